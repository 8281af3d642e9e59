import datetime
import json

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from runnerinit.params import BootstrapInstance, RunnerApplicationDownload


OVERRIDE_TEMPLATE_B64 = (
    "dGVzdF90ZW1wbGF0ZToge3sgLlJ1bm5lck5hbWUgfX0gLSB7eyAuRXh0cmFDb250ZXh0LnRlc3RfdmFyMSB9fSAt"
    "IHt7IC5FeHRyYUNvbnRleHQudGVzdF92YXIyIH19"
)
EXTRA_SPECS = {
    "runner_install_template": OVERRIDE_TEMPLATE_B64,
    "extra_context": {
        "test_var1": "bogus-value1",
        "test_var2": "bogus-value2",
    },
    "pre_install_scripts": {
        "test-script": "dGVzdC1zY3JpcHQtY29udGVudA==",
    },
}


def _self_signed_pem(common_name: str) -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM)


@pytest.fixture(scope="session")
def ca_bundle():
    """Two freshly generated self-signed CA certificates, PEM concatenated."""
    return _self_signed_pem("test-ca-1") + _self_signed_pem("test-ca-2")


@pytest.fixture()
def extra_specs():
    return json.dumps(EXTRA_SPECS).encode()


@pytest.fixture()
def tools():
    return RunnerApplicationDownload(
        os="linux",
        architecture="x64",
        filename="test-filename",
        download_url="https://example.com/test.zip",
        temp_download_token="test-token",
    )


@pytest.fixture()
def linux_bootstrap():
    return BootstrapInstance(
        name="test-instance",
        os_type="linux",
        os_arch="amd64",
        repo_url="https://github.com/example/repo",
        callback_url="https://garm.example.com/api/v1/callbacks",
        metadata_url="https://garm.example.com/api/v1/metadata",
        instance_token="instance-token",
        labels=["self-hosted", "linux"],
    )
