#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
ECR repository the application image is pushed to. The image itself is built and pushed outside of ecs-topology.
"""

from troposphere import Sub
from troposphere.ecr import ImageScanningConfiguration, Repository

REPOSITORY_T = "EcrRepository"
DEFAULT_IMAGE_TAG = "latest"


def define_repository(app_name: str) -> Repository:
    """
    Creates the ECR repository named after the application. Scans on push, and is emptied when
    the stack is deleted.

    :param str app_name:
    :rtype: troposphere.ecr.Repository
    """
    return Repository(
        REPOSITORY_T,
        RepositoryName=f"{app_name}-repo",
        ImageScanningConfiguration=ImageScanningConfiguration(ScanOnPush=True),
        EmptyOnDelete=True,
        DeletionPolicy="Delete",
        UpdateReplacePolicy="Delete",
    )


def repository_image_uri(repository: Repository, tag: str = DEFAULT_IMAGE_TAG) -> Sub:
    """
    :return: the image URI for the given tag in the repository, resolved at deploy time
    :rtype: troposphere.Sub
    """
    return Sub(f"${{{repository.title}.RepositoryUri}}:{tag}")
