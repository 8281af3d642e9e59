from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class UserDataOptions:
    disable_updates_on_boot: bool = False
    extra_packages: list[str] = field(default_factory=list)
    enable_boot_debug: bool = False


# what the pool manager hands over when a new instance has to be bootstrapped
@dataclass(frozen=True)
class BootstrapInstance:
    name: str = ""
    os_type: str = ""
    os_arch: str = ""
    repo_url: str = ""
    callback_url: str = ""
    metadata_url: str = ""
    instance_token: str = ""
    ssh_keys: list[str] = field(default_factory=list)
    # opaque JSON blob, see specs.get_specs
    extra_specs: bytes = b""
    github_runner_group: str = ""
    # concatenated PEM certificates
    ca_cert_bundle: bytes = b""
    labels: list[str] = field(default_factory=list)
    pool_id: str = ""
    jit_config_enabled: bool = False
    user_data_options: UserDataOptions = field(default_factory=UserDataOptions)


@dataclass(frozen=True)
class RunnerApplicationDownload:
    os: Optional[str] = None
    architecture: Optional[str] = None
    download_url: Optional[str] = None
    filename: Optional[str] = None
    temp_download_token: Optional[str] = None
    sha256_checksum: Optional[str] = None
