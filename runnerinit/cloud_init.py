import base64
import copy
from dataclasses import dataclass, field
from typing import Optional, TypedDict, Union

import yaml
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from .errors import InvalidInputError

# minimum rough type definition
# ref: https://github.com/canonical/cloud-init/blob/main/cloudinit/config/schemas/schema-cloud-config-v1.json

CLOUD_CONFIG_HEADER = "#cloud-config"

DEFAULT_USER = "runner"
DEFAULT_USER_SHELL = "/bin/bash"
DEFAULT_USER_GROUPS = [
    "sudo",
    "adm",
    "cdrom",
    "dialout",
    "dip",
    "video",
    "plugdev",
    "netdev",
]
DEFAULT_USER_SUDO = "ALL=(ALL) NOPASSWD:ALL"
DEFAULT_PACKAGES = ["curl", "tar"]


class DefaultUser(TypedDict, total=False):
    name: str
    home: str
    shell: str
    groups: list[str]
    sudo: str


class SystemInfo(TypedDict, total=False):
    default_user: DefaultUser


class CaCerts(TypedDict, total=False):
    trusted: list[str]


class WriteFilesItem(TypedDict, total=False):
    encoding: str
    content: str
    owner: str
    path: str
    permissions: str


WriteFiles = list[WriteFilesItem]
Runcmd = list[Union[str, list[str]]]


class UserData(TypedDict, total=False):
    package_upgrade: bool
    packages: list[str]
    ssh_authorized_keys: list[str]
    ca_certs: CaCerts
    system_info: SystemInfo
    write_files: WriteFiles
    runcmd: Runcmd


def _append_unique(items: list[str], new: tuple[str, ...]):
    for item in new:
        if item and item not in items:
            items.append(item)


def parse_ca_bundle(bundle: bytes) -> list[str]:
    try:
        certs = x509.load_pem_x509_certificates(bundle)
    except ValueError:
        raise InvalidInputError("failed to parse CA cert bundle") from None
    if not certs:
        raise InvalidInputError("failed to parse CA cert bundle")
    return [cert.public_bytes(Encoding.PEM).decode() for cert in certs]


# mutable builder for a #cloud-config document; build() hands out a snapshot
@dataclass
class CloudInit:
    package_upgrade: bool = False
    packages: list[str] = field(default_factory=list)
    ssh_authorized_keys: list[str] = field(default_factory=list)
    ca_certs: list[str] = field(default_factory=list)
    system_info: Optional[SystemInfo] = None
    write_files: WriteFiles = field(default_factory=list)
    runcmd: Runcmd = field(default_factory=list)

    def add_ssh_key(self, *keys: str):
        _append_unique(self.ssh_authorized_keys, keys)

    def add_package(self, *pkgs: str):
        _append_unique(self.packages, pkgs)

    def add_run_cmd(self, cmd: Union[str, list[str]]):
        self.runcmd.append(cmd)

    def add_file(
        self, content: Union[str, bytes], path: str, owner: str, permissions: str
    ):
        if isinstance(content, str):
            content = content.encode()
        item: WriteFilesItem = {
            "encoding": "b64",
            "content": base64.b64encode(content).decode(),
            "owner": owner,
            "path": path,
            "permissions": permissions,
        }
        # one entry per path
        for idx, existing in enumerate(self.write_files):
            if existing.get("path") == path:
                self.write_files[idx] = item
                return
        self.write_files.append(item)

    def add_ca_cert(self, bundle: Optional[bytes]):
        if not bundle:
            return
        _append_unique(self.ca_certs, tuple(parse_ca_bundle(bundle)))

    def build(self) -> UserData:
        userdata: UserData = {"package_upgrade": self.package_upgrade}
        if self.packages:
            userdata["packages"] = list(self.packages)
        if self.ssh_authorized_keys:
            userdata["ssh_authorized_keys"] = list(self.ssh_authorized_keys)
        if self.ca_certs:
            userdata["ca_certs"] = {"trusted": list(self.ca_certs)}
        if self.system_info is not None:
            userdata["system_info"] = copy.deepcopy(self.system_info)
        if self.write_files:
            userdata["write_files"] = copy.deepcopy(self.write_files)
        if self.runcmd:
            userdata["runcmd"] = copy.deepcopy(self.runcmd)
        return userdata

    def serialize(self) -> str:
        body = yaml.safe_dump(self.build(), width=256, sort_keys=False)
        return CLOUD_CONFIG_HEADER + "\n" + body


def new_default_cloud_init_config() -> CloudInit:
    return CloudInit(
        package_upgrade=True,
        packages=list(DEFAULT_PACKAGES),
        system_info={
            "default_user": {
                "name": DEFAULT_USER,
                "home": f"/home/{DEFAULT_USER}",
                "shell": DEFAULT_USER_SHELL,
                "groups": list(DEFAULT_USER_GROUPS),
                "sudo": DEFAULT_USER_SUDO,
            }
        },
    )
