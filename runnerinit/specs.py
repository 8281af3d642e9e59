import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import InvalidInputError
from .params import BootstrapInstance


# user overrides carried in the "extra_specs" blob of a bootstrap request
@dataclass(frozen=True)
class CloudConfigSpec:
    # None when the blob does not mention a template at all
    runner_install_template: Optional[bytes] = None
    extra_context: dict[str, str] = field(default_factory=dict)
    pre_install_scripts: dict[str, bytes] = field(default_factory=dict)


def _b64decode(value: Any, what: str) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise InvalidInputError(f"decoding {what}: expected a base64 encoded string")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise InvalidInputError(f"decoding {what}: {e}") from e


def _string_map(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidInputError(f"decoding {what}: expected an object")
    return value


def parse_specs(raw: Optional[bytes]) -> CloudConfigSpec:
    if not raw:
        return CloudConfigSpec()
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInputError(f"unmarshaling extra specs: {e}") from e
    if data is None:
        return CloudConfigSpec()
    if not isinstance(data, dict):
        raise InvalidInputError("unmarshaling extra specs: expected a JSON object")

    template = None
    if data.get("runner_install_template") is not None:
        template = _b64decode(data["runner_install_template"], "runner_install_template")

    extra_context: dict[str, str] = {}
    for key, value in _string_map(data.get("extra_context"), "extra_context").items():
        if not isinstance(value, str):
            raise InvalidInputError(f"decoding extra_context: value of {key} is not a string")
        extra_context[key] = value

    pre_install_scripts = {
        name: _b64decode(content, f"pre_install_scripts[{name}]")
        for name, content in _string_map(
            data.get("pre_install_scripts"), "pre_install_scripts"
        ).items()
    }

    return CloudConfigSpec(
        runner_install_template=template,
        extra_context=extra_context,
        pre_install_scripts=pre_install_scripts,
    )


def get_specs(bootstrap: BootstrapInstance) -> CloudConfigSpec:
    return parse_specs(bootstrap.extra_specs)
