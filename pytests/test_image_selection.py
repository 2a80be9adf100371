#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import fixture, raises
from troposphere import Sub

from ecs_topology.ecr import define_repository
from ecs_topology.ecs.ecs_image import (
    BOOTSTRAP_IMAGE,
    ImageSelection,
    PublicBootstrapImage,
    RegistryImage,
    select_image,
)


@fixture()
def repository():
    return define_repository("myapp")


def test_bootstrap_selection(repository):
    selection = select_image(True, repository, 8080)
    assert selection.is_bootstrap
    assert isinstance(selection.image_ref, PublicBootstrapImage)
    assert selection.image == BOOTSTRAP_IMAGE
    assert selection.command == ["-listen=:8080", "-text=bootstrap-ok"]
    assert selection.health_check_path == "/"


def test_bootstrap_listens_on_container_port(repository):
    selection = select_image(True, repository, 3000)
    assert selection.command[0] == "-listen=:3000"


def test_registry_selection(repository):
    selection = select_image(False, repository, 8080)
    assert not selection.is_bootstrap
    assert isinstance(selection.image_ref, RegistryImage)
    assert isinstance(selection.image, Sub)
    assert selection.image.to_dict() == {
        "Fn::Sub": "${EcrRepository.RepositoryUri}:latest"
    }
    assert selection.command is None
    assert selection.health_check_path == "/actuator/health"


def test_selection_requires_image_ref():
    with raises(TypeError):
        ImageSelection(BOOTSTRAP_IMAGE)
