from typing import Literal, Optional

from typing_extensions import TypeGuard

from .errors import NotFoundError, UnsupportedOSError
from .params import RunnerApplicationDownload

OSType = Literal["linux", "windows"]
OSArch = Literal["amd64", "arm", "arm64"]

# names used by the runner application downloads endpoint
github_arch_map: dict[OSArch, str] = {
    "amd64": "x64",
    "arm": "arm",
    "arm64": "arm64",
}
github_os_type_map: dict[OSType, str] = {
    "linux": "linux",
    "windows": "win",
}
# default runner labels
github_os_tag_map: dict[OSType, str] = {
    "linux": "Linux",
    "windows": "Windows",
}

# image "os" values reported by providers, mostly distro names
os_to_os_type_map: dict[str, OSType] = {
    "almalinux": "linux",
    "alma": "linux",
    "alpine": "linux",
    "archlinux": "linux",
    "arch": "linux",
    "centos": "linux",
    "debian": "linux",
    "fedora": "linux",
    "linux": "linux",
    "opensuse": "linux",
    "rhel": "linux",
    "rocky": "linux",
    "suse": "linux",
    "ubuntu": "linux",
    "windows": "windows",
}

user_data_header_map: dict[OSType, str] = {
    "linux": "#cloud-config",
    "windows": "#ps1_sysnative",
}

# file names under runnerinit/templates
install_template_map: dict[OSType, str] = {
    "linux": "linux_install_runner.sh.j2",
    "windows": "windows_install_runner.ps1.j2",
}


def is_valid_os_type(os_type: str) -> TypeGuard[OSType]:
    return os_type == "linux" or os_type == "windows"


def is_valid_os_arch(os_arch: str) -> TypeGuard[OSArch]:
    return os_arch in github_arch_map


def parse_os_type(os_type: str) -> OSType:
    if not is_valid_os_type(os_type):
        raise UnsupportedOSError(f"unsupported os type: {os_type}")
    return os_type


def resolve_to_github_arch(arch: str) -> str:
    if not is_valid_os_arch(arch):
        raise NotFoundError(f"arch {arch} is unknown")
    return github_arch_map[arch]


def resolve_to_github_os_type(os_type: str) -> str:
    if not is_valid_os_type(os_type):
        raise NotFoundError(f"os {os_type} is unknown")
    return github_os_type_map[os_type]


def resolve_to_github_tag(os_type: str) -> str:
    if not is_valid_os_type(os_type):
        raise NotFoundError(f"os {os_type} is unknown")
    return github_os_tag_map[os_type]


def os_to_os_type(os_name: str) -> OSType:
    os_type = os_to_os_type_map.get(os_name.lower())
    if os_type is None:
        raise NotFoundError(f"no OS to OS type mapping for {os_name}")
    return os_type


def get_user_data_header(os_type: OSType) -> str:
    return user_data_header_map[os_type]


def get_install_template_name(os_type: OSType) -> str:
    return install_template_map[os_type]


def get_tools(
    os_type: str, os_arch: str, tools: Optional[list[RunnerApplicationDownload]]
) -> RunnerApplicationDownload:
    try:
        github_os = resolve_to_github_os_type(os_type)
    except NotFoundError:
        raise UnsupportedOSError(f"unsupported OS type: {os_type}") from None
    try:
        github_arch = resolve_to_github_arch(os_arch)
    except NotFoundError:
        raise UnsupportedOSError(f"unsupported OS arch: {os_arch}") from None

    for tool in tools or []:
        if tool.os == github_os and tool.architecture == github_arch:
            return tool
    raise NotFoundError(f"failed to find tools for OS {os_type} and arch {os_arch}")
