import json
import logging
import os
import sys
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from .cloudconfig import get_cloud_config
from .errors import LogFolderError, RunnerInitError
from .params import BootstrapInstance, RunnerApplicationDownload, UserDataOptions
from .util import get_logging_handler, sanitize_log_entry

LOG_FILE = os.environ.get("RUNNERINIT_LOG_FILE", "")
LOG_LEVEL = os.environ.get("RUNNERINIT_LOG_LEVEL", "INFO")

try:
    handler = get_logging_handler(LOG_FILE)
except LogFolderError as e:
    sys.exit(str(e))
logging.root.handlers = [handler]
logging.root.setLevel(LOG_LEVEL)
log = logging.getLogger("runnerinit")

app = FastAPI()


class UserDataOptionsBody(BaseModel):
    disable_updates_on_boot: bool = False
    extra_packages: list[str] = []
    enable_boot_debug: bool = False


class BootstrapBody(BaseModel):
    name: str = ""
    os_type: str = ""
    os_arch: str = ""
    repo_url: str = ""
    callback_url: str = ""
    metadata_url: str = ""
    instance_token: str = ""
    ssh_keys: list[str] = []
    extra_specs: Optional[dict[str, Any]] = None
    github_runner_group: str = ""
    ca_cert_bundle: str = ""
    labels: list[str] = []
    pool_id: str = ""
    jit_config_enabled: bool = False
    user_data_options: UserDataOptionsBody = UserDataOptionsBody()

    def to_bootstrap_instance(self) -> BootstrapInstance:
        fields = self.model_dump(exclude={"extra_specs", "ca_cert_bundle", "user_data_options"})
        return BootstrapInstance(
            **fields,
            extra_specs=json.dumps(self.extra_specs).encode() if self.extra_specs else b"",
            ca_cert_bundle=self.ca_cert_bundle.encode(),
            user_data_options=UserDataOptions(**self.user_data_options.model_dump()),
        )


class ToolsBody(BaseModel):
    os: Optional[str] = None
    architecture: Optional[str] = None
    download_url: Optional[str] = None
    filename: Optional[str] = None
    temp_download_token: Optional[str] = None
    sha256_checksum: Optional[str] = None


class UserDataRequest(BaseModel):
    bootstrap: BootstrapBody
    tools: ToolsBody
    runner_name: str


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    log.info(
        sanitize_log_entry(f"{request.method} {request.url.path} {response.status_code}")
    )
    return response


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request, exc):
    return PlainTextResponse(str(exc), status_code=400)


@app.exception_handler(RunnerInitError)
def runner_init_exception_handler(request, exc):
    return PlainTextResponse(str(exc), status_code=400)


@app.post("/userdata", response_class=PlainTextResponse)
def create_userdata(body: UserDataRequest):
    bootstrap = body.bootstrap.to_bootstrap_instance()
    tools = RunnerApplicationDownload(**body.tools.model_dump())
    return get_cloud_config(bootstrap, tools, body.runner_name)
