"""Tests for the OS / architecture lookup tables."""

import pytest

from runnerinit.catalog import (
    get_install_template_name,
    get_tools,
    get_user_data_header,
    os_to_os_type,
    parse_os_type,
    resolve_to_github_arch,
    resolve_to_github_os_type,
    resolve_to_github_tag,
)
from runnerinit.errors import NotFoundError, UnsupportedOSError
from runnerinit.params import RunnerApplicationDownload


class TestResolveToGithub:
    @pytest.mark.parametrize("arch,expected", [("amd64", "x64"), ("arm", "arm"), ("arm64", "arm64")])
    def test_arch(self, arch, expected):
        assert resolve_to_github_arch(arch) == expected

    def test_unknown_arch(self):
        with pytest.raises(NotFoundError) as exc:
            resolve_to_github_arch("some-unknown-arch")
        assert str(exc.value) == "arch some-unknown-arch is unknown"

    def test_os_type(self):
        assert resolve_to_github_os_type("linux") == "linux"
        assert resolve_to_github_os_type("windows") == "win"

    def test_unknown_os_type(self):
        with pytest.raises(NotFoundError) as exc:
            resolve_to_github_os_type("some-unknown-os")
        assert str(exc.value) == "os some-unknown-os is unknown"

    def test_tag(self):
        assert resolve_to_github_tag("linux") == "Linux"
        assert resolve_to_github_tag("windows") == "Windows"

    def test_unknown_tag(self):
        with pytest.raises(NotFoundError, match="os some-unknown-os is unknown"):
            resolve_to_github_tag("some-unknown-os")


class TestOSTypes:
    def test_os_to_os_type(self):
        assert os_to_os_type("windows") == "windows"
        assert os_to_os_type("ubuntu") == "linux"
        assert os_to_os_type("Debian") == "linux"

    def test_os_to_os_type_unknown(self):
        with pytest.raises(NotFoundError) as exc:
            os_to_os_type("some-unknown-os")
        assert str(exc.value) == "no OS to OS type mapping for some-unknown-os"

    def test_parse_os_type(self):
        assert parse_os_type("linux") == "linux"

    def test_parse_os_type_unknown(self):
        with pytest.raises(UnsupportedOSError) as exc:
            parse_os_type("")
        assert str(exc.value) == "unsupported os type: "

    def test_headers_and_templates(self):
        assert get_user_data_header("linux") == "#cloud-config"
        assert get_user_data_header("windows") == "#ps1_sysnative"
        assert get_install_template_name("linux").endswith(".sh.j2")
        assert get_install_template_name("windows").endswith(".ps1.j2")


class TestGetTools:
    def _tools(self):
        return [
            RunnerApplicationDownload(os="win", architecture="x64", filename="win.zip"),
            RunnerApplicationDownload(os="linux", architecture="arm64", filename="arm.tar.gz"),
            RunnerApplicationDownload(os="linux", architecture="x64", filename="x64.tar.gz"),
        ]

    def test_finds_matching_tools(self):
        tools = get_tools("linux", "amd64", self._tools())
        assert tools.os == "linux"
        assert tools.architecture == "x64"
        assert tools.filename == "x64.tar.gz"

    def test_unsupported_os_type(self):
        with pytest.raises(UnsupportedOSError) as exc:
            get_tools("some-unknown-os", "amd64", None)
        assert str(exc.value) == "unsupported OS type: some-unknown-os"

    def test_unsupported_os_arch(self):
        with pytest.raises(UnsupportedOSError) as exc:
            get_tools("linux", "some-unknown-arch", None)
        assert str(exc.value) == "unsupported OS arch: some-unknown-arch"

    def test_no_matching_tools(self):
        with pytest.raises(NotFoundError) as exc:
            get_tools("linux", "amd64", None)
        assert str(exc.value) == "failed to find tools for OS linux and arch amd64"
