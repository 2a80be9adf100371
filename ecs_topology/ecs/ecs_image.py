#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Selection of the container image, and of what depends on it.

Bootstrap mode deploys a trivial public image so the whole topology can stabilize before any
application image was pushed to the ECR repository. The image variant decides at once the image,
the command override and the load balancer health check path.
"""

from __future__ import annotations

from typing import Optional

from troposphere import AWSHelperFn
from troposphere.ecr import Repository

from ecs_topology.common.logging import LOG
from ecs_topology.ecr import DEFAULT_IMAGE_TAG, repository_image_uri

BOOTSTRAP_IMAGE = "hashicorp/http-echo:0.2.3"
BOOTSTRAP_TEXT = "bootstrap-ok"
BOOTSTRAP_HEALTH_CHECK_PATH = "/"
APPLICATION_HEALTH_CHECK_PATH = "/actuator/health"


class ImageRef:
    """
    Base class for the image variants.

    :cvar str health_check_path: the path the load balancer checks the service health on
    """

    health_check_path = None

    @property
    def image(self):
        raise NotImplementedError

    @property
    def command(self) -> Optional[list]:
        return None


class RegistryImage(ImageRef):
    """
    The application image, from the ECR repository of the topology
    """

    health_check_path = APPLICATION_HEALTH_CHECK_PATH

    def __init__(self, repository: Repository, tag: str = DEFAULT_IMAGE_TAG):
        self.repository = repository
        self.tag = tag

    def __repr__(self):
        return f"RegistryImage({self.repository.title}:{self.tag})"

    @property
    def image(self) -> AWSHelperFn:
        return repository_image_uri(self.repository, self.tag)


class PublicBootstrapImage(ImageRef):
    """
    Public echo server image, told to listen on the container port and answer bootstrap-ok to all paths
    """

    health_check_path = BOOTSTRAP_HEALTH_CHECK_PATH
    reference = BOOTSTRAP_IMAGE

    def __init__(self, container_port: int):
        self.container_port = container_port

    def __repr__(self):
        return f"PublicBootstrapImage({self.reference})"

    @property
    def image(self) -> str:
        return self.reference

    @property
    def command(self) -> list:
        return [f"-listen=:{self.container_port}", f"-text={BOOTSTRAP_TEXT}"]


class ImageSelection:
    """
    Outcome of the image selection. Only built by select_image, so the image, the command and the
    health check path always come from the same variant.
    """

    def __init__(self, image_ref: ImageRef):
        if not isinstance(image_ref, ImageRef):
            raise TypeError("image_ref must be of type", ImageRef, "Got", type(image_ref))
        self._image_ref = image_ref

    def __repr__(self):
        return f"ImageSelection({self._image_ref!r}, command={self.command}, path={self.health_check_path})"

    @property
    def image_ref(self) -> ImageRef:
        return self._image_ref

    @property
    def is_bootstrap(self) -> bool:
        return isinstance(self._image_ref, PublicBootstrapImage)

    @property
    def image(self):
        return self._image_ref.image

    @property
    def command(self) -> Optional[list]:
        return self._image_ref.command

    @property
    def health_check_path(self) -> str:
        return self._image_ref.health_check_path


def select_image(
    bootstrap_mode: bool, repository: Repository, container_port: int
) -> ImageSelection:
    """
    Single decision point for the image, its command override and the health check path.

    :param bool bootstrap_mode: whether to deploy the public bootstrap image
    :param troposphere.ecr.Repository repository: repository of the application image
    :param int container_port: port the container listens on
    :rtype: ImageSelection
    """
    if bootstrap_mode:
        image_ref = PublicBootstrapImage(container_port)
    else:
        image_ref = RegistryImage(repository, DEFAULT_IMAGE_TAG)
    selection = ImageSelection(image_ref)
    LOG.info(
        f"Bootstrap mode {'on' if bootstrap_mode else 'off'} - Using {image_ref!r}, "
        f"health check path {selection.health_check_path}"
    )
    return selection
