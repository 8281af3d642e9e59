import base64
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import jinja2
from jinja2.ext import Extension
from jinja2.sandbox import SandboxedEnvironment

from .catalog import get_install_template_name, parse_os_type
from .cloud_init import DEFAULT_USER
from .errors import InvalidInputError, RunnerInitError, TemplateError
from .params import BootstrapInstance, RunnerApplicationDownload
from .specs import get_specs

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

STRING = r""" "(?:[^"\\]|\\.)*" | '(?:[^'\\]|\\.)*' """

# a {{ ... }} or {% ... %} tag; delimiters inside string literals do not close it
TAG_RE = re.compile(rf"({{{{|{{%)((?:{STRING}|.)*?)(}}}}|%}})", re.DOTALL | re.VERBOSE)
# a string literal, left alone, or ".Name" at the start of an operand as in "{{ .RunnerName }}"
DOT_FIELD_RE = re.compile(
    rf"({STRING}) | (^|[\s(\[,|=!<>+\-*/~])\.(?=[A-Za-z_])", re.DOTALL | re.VERBOSE
)


def _strip_dots(tag: str) -> str:
    return DOT_FIELD_RE.sub(
        lambda m: m.group(1) if m.group(1) is not None else m.group(2), tag
    )


class DotFieldExtension(Extension):
    """Accept ``{{ .Field }}`` references by dropping the leading dot."""

    def preprocess(self, source, name, filename=None):
        return TAG_RE.sub(
            lambda m: m.group(1) + _strip_dots(m.group(2)) + m.group(3),
            source,
        )


def _environment() -> SandboxedEnvironment:
    return SandboxedEnvironment(
        loader=jinja2.FileSystemLoader(TEMPLATE_DIR),
        undefined=jinja2.StrictUndefined,
        extensions=[DotFieldExtension],
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        autoescape=False,
    )


env = _environment()


@dataclass(frozen=True)
class InstallRunnerParams:
    file_name: str = ""
    download_url: str = ""
    temp_download_token: str = ""
    runner_username: str = DEFAULT_USER
    runner_group: str = DEFAULT_USER
    repo_url: str = ""
    github_url: str = ""
    metadata_url: str = ""
    runner_name: str = ""
    runner_labels: str = ""
    callback_url: str = ""
    callback_token: str = ""
    ca_bundle: str = ""
    github_runner_group: str = ""
    enable_boot_debug: bool = False
    use_jit_config: bool = False
    extra_context: dict[str, str] = field(default_factory=dict)
    # file names dropped into the runner user home before the script runs
    pre_install_scripts: list[str] = field(default_factory=list)

    # names as seen from inside a template
    def template_context(self) -> dict[str, Any]:
        return {
            "FileName": self.file_name,
            "DownloadURL": self.download_url,
            "TempDownloadToken": self.temp_download_token,
            "RunnerUsername": self.runner_username,
            "RunnerGroup": self.runner_group,
            "RepoURL": self.repo_url,
            "GitHubURL": self.github_url,
            "MetadataURL": self.metadata_url,
            "RunnerName": self.runner_name,
            "RunnerLabels": self.runner_labels,
            "CallbackURL": self.callback_url,
            "CallbackToken": self.callback_token,
            "CABundle": self.ca_bundle,
            "GitHubRunnerGroup": self.github_runner_group,
            "EnableBootDebug": self.enable_boot_debug,
            "UseJITConfig": self.use_jit_config,
            "ExtraContext": dict(self.extra_context),
            "PreInstallScripts": list(self.pre_install_scripts),
        }


def _load_template(os_type: str, template_override: Union[str, bytes, None]) -> jinja2.Template:
    try:
        if template_override:
            if isinstance(template_override, bytes):
                template_override = template_override.decode()
            log.debug("using install template supplied in extra specs")
            return env.from_string(template_override)
        name = get_install_template_name(parse_os_type(os_type))
        log.debug(f"using bundled install template {name}")
        return env.get_template(name)
    except (jinja2.TemplateSyntaxError, UnicodeDecodeError) as e:
        raise TemplateError(f"parsing template: {e}") from e


def install_runner_script(
    params: InstallRunnerParams,
    os_type: str,
    template_override: Union[str, bytes, None] = None,
) -> bytes:
    template = _load_template(os_type, template_override)
    try:
        rendered = template.render(params.template_context())
    except jinja2.TemplateError as e:
        raise TemplateError(f"rendering template: {e}") from e
    return rendered.encode()


def github_url_from_repo_url(repo_url: str) -> str:
    match = re.match(r"^(https?://[^/]+)", repo_url)
    return match.group(1) if match else ""


def get_runner_install_script(
    bootstrap: BootstrapInstance,
    tools: RunnerApplicationDownload,
    runner_name: str,
) -> bytes:
    if not tools.filename:
        raise InvalidInputError("missing tools filename")
    if not tools.download_url:
        raise InvalidInputError("missing tools download URL")

    try:
        specs = get_specs(bootstrap)
    except RunnerInitError as e:
        raise e.wrap("getting specs") from e

    ca_bundle = ""
    if bootstrap.ca_cert_bundle:
        ca_bundle = base64.b64encode(bootstrap.ca_cert_bundle).decode()

    params = InstallRunnerParams(
        file_name=tools.filename,
        download_url=tools.download_url,
        temp_download_token=tools.temp_download_token or "",
        repo_url=bootstrap.repo_url,
        github_url=github_url_from_repo_url(bootstrap.repo_url),
        metadata_url=bootstrap.metadata_url,
        runner_name=runner_name,
        runner_labels=",".join(bootstrap.labels),
        callback_url=bootstrap.callback_url,
        callback_token=bootstrap.instance_token,
        ca_bundle=ca_bundle,
        github_runner_group=bootstrap.github_runner_group,
        enable_boot_debug=bootstrap.user_data_options.enable_boot_debug,
        use_jit_config=bootstrap.jit_config_enabled,
        extra_context=specs.extra_context,
        pre_install_scripts=sorted(specs.pre_install_scripts),
    )
    try:
        return install_runner_script(
            params, bootstrap.os_type, specs.runner_install_template
        )
    except RunnerInitError as e:
        raise e.wrap("generating script") from e
