from typing import Any

import requests

from .errors import InvalidInputError
from .params import RunnerApplicationDownload

GH_API = "https://api.github.com"


def runner_download_from_json(item: dict[str, Any]) -> RunnerApplicationDownload:
    return RunnerApplicationDownload(
        os=item.get("os"),
        architecture=item.get("architecture"),
        download_url=item.get("download_url"),
        filename=item.get("filename"),
        temp_download_token=item.get("temp_download_token"),
        sha256_checksum=item.get("sha256_checksum"),
    )


# path: "repos/<owner>/<repo>", "orgs/<org>" or "enterprises/<enterprise>"
def list_runner_downloads(
    path: str, token: str, api_url: str = GH_API, timeout: int = 30
) -> list[RunnerApplicationDownload]:
    url = f"{api_url.rstrip('/')}/{path.strip('/')}/actions/runners/downloads"
    response = requests.get(
        url,
        headers={
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        },
        timeout=timeout,
    )
    if response.status_code != 200:
        raise InvalidInputError(
            f"listing runner downloads failed ({response.status_code}): {response.text}"
        )
    return list(map(runner_download_from_json, response.json()))
