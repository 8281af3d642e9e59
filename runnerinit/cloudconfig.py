# user data for new runner instances: #cloud-config on linux, #ps1_sysnative on windows

import logging

from .catalog import get_user_data_header, is_valid_os_type
from .cloud_init import new_default_cloud_init_config
from .errors import RunnerInitError, UnsupportedOSError
from .install_script import get_runner_install_script
from .params import BootstrapInstance, RunnerApplicationDownload
from .specs import get_specs

log = logging.getLogger(__name__)

BOOTSTRAP_SCRIPT_NAME = "runner_bootstrap.sh"
EXECUTABLE = "0755"


def get_cloud_init_config(bootstrap: BootstrapInstance, install_script: bytes) -> str:
    cloud_cfg = new_default_cloud_init_config()
    if bootstrap.user_data_options.disable_updates_on_boot:
        cloud_cfg.package_upgrade = False
        cloud_cfg.packages = []

    try:
        specs = get_specs(bootstrap)
    except RunnerInitError as e:
        raise e.wrap("getting specs") from e

    user = cloud_cfg.system_info["default_user"]["name"]
    home = f"/home/{user}"
    owner = f"{user}:{user}"

    cloud_cfg.add_ssh_key(*bootstrap.ssh_keys)
    cloud_cfg.add_package(*bootstrap.user_data_options.extra_packages)
    for name, content in specs.pre_install_scripts.items():
        cloud_cfg.add_file(content, f"{home}/{name}", owner, EXECUTABLE)

    script_path = f"{home}/{BOOTSTRAP_SCRIPT_NAME}"
    cloud_cfg.add_file(install_script, script_path, owner, EXECUTABLE)
    cloud_cfg.add_run_cmd(script_path)

    try:
        cloud_cfg.add_ca_cert(bootstrap.ca_cert_bundle)
    except RunnerInitError as e:
        raise e.wrap("adding CA cert bundle") from e

    return cloud_cfg.serialize()


def get_cloud_config(
    bootstrap: BootstrapInstance,
    tools: RunnerApplicationDownload,
    runner_name: str,
) -> str:
    try:
        install_script = get_runner_install_script(bootstrap, tools, runner_name)
    except RunnerInitError as e:
        raise e.wrap("generating script") from e

    os_type = bootstrap.os_type
    if not is_valid_os_type(os_type):
        raise UnsupportedOSError(f"unknown os type: {os_type}")

    log.debug(f"composing {os_type} user data for runner {runner_name}")
    if os_type == "linux":
        try:
            return get_cloud_init_config(bootstrap, install_script)
        except RunnerInitError as e:
            raise e.wrap("getting cloud init config") from e
    return get_user_data_header(os_type) + "\n" + install_script.decode()
