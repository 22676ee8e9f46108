"""Unit tests for invocation models."""

import os
from unittest.mock import patch

import pytest

from ric.models.errors import ConfigurationError
from ric.models.invocation import (
    CONTAINER_WORKDIR,
    ExistingContainer,
    InvocationRequest,
    MountSpec,
    NewContainer,
    UserIdentity,
    build_invocation,
    build_volumes,
    qualify_image,
)


class TestQualifyImage:
    """Tests for tag qualification of image references."""

    @pytest.mark.parametrize("image", ["debian", "library/ubuntu", "ghcr.io/org/tool"])
    def test_untagged_gets_latest(self, image):
        assert qualify_image(image) == f"{image}:latest"

    @pytest.mark.parametrize("image", ["debian:12", "python:3.12-slim", "localhost:5000/app"])
    def test_reference_with_colon_is_unchanged(self, image):
        assert qualify_image(image) == image


class TestUserIdentity:
    """Tests for user identity selection."""

    def test_root(self):
        assert str(UserIdentity.select(root=True)) == "0:0"

    def test_current_user(self):
        expected = f"{os.getuid()}:{os.getgid()}"
        assert str(UserIdentity.select(root=False)) == expected


class TestMountSpec:
    """Tests for volume binding parsing."""

    def test_parse_absolute(self):
        mount = MountSpec.parse("/data:/data")
        assert mount.host == "/data"
        assert mount.container == "/data"
        assert mount.mode is None
        assert str(mount) == "/data:/data"

    def test_parse_with_mode(self):
        mount = MountSpec.parse("/etc/hosts:/etc/hosts:ro")
        assert mount.mode == "ro"
        assert str(mount) == "/etc/hosts:/etc/hosts:ro"

    def test_named_volume_passes_through(self):
        assert str(MountSpec.parse("cache:/root/.cache")) == "cache:/root/.cache"

    def test_relative_host_path_made_absolute(self):
        mount = MountSpec.parse("./data:/data")
        assert mount.host == os.path.abspath("./data")

    @pytest.mark.parametrize("value", ["/data", ":/data", "/data:", "a:b:c:d"])
    def test_malformed(self, value):
        with pytest.raises(ConfigurationError):
            MountSpec.parse(value)

    def test_relative_container_path_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            MountSpec.parse("/data:data")
        assert "absolute" in exc_info.value.message


class TestBuildVolumes:
    """Tests for the effective volume list."""

    def test_workdir_mount_is_last(self):
        volumes = build_volumes(["/a:/a", "/b:/b"], "/home/user/project")
        assert [str(v) for v in volumes] == ["/a:/a", "/b:/b", "/home/user/project:/tmp"]

    def test_only_workdir_without_user_mounts(self):
        volumes = build_volumes([], "/work")
        assert [str(v) for v in volumes] == ["/work:/tmp"]


class TestBuildInvocation:
    """Tests for invocation variant selection."""

    def test_image_selects_new_container(self):
        spec = build_invocation(
            InvocationRequest(command=("ls",), image="debian", mounts=("/a:/a", "/b:/b")),
            cwd="/work",
        )

        assert isinstance(spec, NewContainer)
        assert spec.qualified_image == "debian:latest"
        assert spec.volumes == ["/a:/a", "/b:/b", "/work:/tmp"]
        assert spec.working_dir == CONTAINER_WORKDIR == "/tmp"
        assert spec.command == ("ls",)

    def test_container_selects_existing(self):
        spec = build_invocation(
            InvocationRequest(command=("ls", "/"), container="sandbox", root=True)
        )

        assert isinstance(spec, ExistingContainer)
        assert spec.name == "sandbox"
        assert str(spec.user) == "0:0"

    def test_root_flag_applies_to_new_container(self):
        spec = build_invocation(
            InvocationRequest(command=("whoami",), image="debian", root=True), cwd="/w"
        )
        assert spec.user == UserIdentity(0, 0)

    def test_cwd_defaults_to_process_cwd(self):
        with patch("ric.models.invocation.os.getcwd", return_value="/somewhere"):
            spec = build_invocation(InvocationRequest(command=("ls",), image="debian"))
        assert spec.volumes[-1] == "/somewhere:/tmp"

    def test_neither_image_nor_container(self):
        with pytest.raises(ConfigurationError) as exc_info:
            build_invocation(InvocationRequest(command=("ls",)))
        assert exc_info.value.exit_code == 2

    def test_both_image_and_container(self):
        with pytest.raises(ConfigurationError):
            build_invocation(
                InvocationRequest(command=("ls",), image="debian", container="sandbox")
            )

    def test_empty_command(self):
        with pytest.raises(ConfigurationError):
            build_invocation(InvocationRequest(command=(), image="debian"))
