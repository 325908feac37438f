from __future__ import annotations

from typing import Any

from oci.auth.signers import InstancePrincipalsSecurityTokenSigner
from oci.config import from_file
from oci.object_storage import ObjectStorageClient
from oci.signer import Signer


class ObjectStorageReader:
    """
    Read-only access to recorded datasets kept in OCI Object Storage.

    Authentication modes:
      - "instance_principal":
          Uses the OCI Instance Principal of the current Compute instance.
          Suitable only when running on OCI infrastructure.
      - "api_key":
          Uses a user-scoped OCI API key (private PEM key + config file).
          Suitable for local development, CI, and non-OCI environments.

    A pre-built client (and namespace) can be injected instead, which is how
    tests and alternative SDK configurations plug in.
    """
    def __init__(
        self,
        *,
        region: str | None = None,
        auth_mode: str = "instance_principal",
        oci_config_file: str | None = None,
        oci_profile: str = "DEFAULT",
        client: Any | None = None,
        namespace: str | None = None,
    ) -> None:
        if client is None:
            client = self._build_client(
                region=region,
                auth_mode=auth_mode,
                oci_config_file=oci_config_file,
                oci_profile=oci_profile,
            )

        self.client = client
        self.namespace = namespace if namespace is not None else self.client.get_namespace().data

    @staticmethod
    def _build_client(
        *,
        region: str | None,
        auth_mode: str,
        oci_config_file: str | None,
        oci_profile: str,
    ) -> ObjectStorageClient:
        if auth_mode == "instance_principal":
            signer = InstancePrincipalsSecurityTokenSigner()
            config = {}

        elif auth_mode == "api_key":
            if oci_config_file is None:
                raise ValueError("oci_config_file is required for api_key auth")

            config = from_file(
                file_location=oci_config_file,
                profile_name=oci_profile,
            )
            signer = Signer(
                tenancy=config["tenancy"],
                user=config["user"],
                fingerprint=config["fingerprint"],
                private_key_file_location=config["key_file"],
                pass_phrase=config.get("pass_phrase"),
            )

        else:
            raise ValueError(f"Unknown auth_mode: {auth_mode}")

        client_kwargs = {}
        if region:
            client_kwargs["region"] = region

        return ObjectStorageClient(
            config=config,
            signer=signer,
            **client_kwargs,
        )

    def read_bytes(self, bucket: str, key: str) -> bytes:
        """
        Download a whole object into memory.

        The OCI Python SDK exposes response bodies in different shapes
        depending on transport and SDK version; they are normalized here.
        Recorded datasets are small enough to hold in memory.
        """
        resp = self.client.get_object(
            namespace_name=self.namespace,
            bucket_name=bucket,
            object_name=key,
        )
        d = resp.data

        if hasattr(d, "read") and callable(getattr(d, "read")):
            return d.read()

        if hasattr(d, "content"):
            return d.content

        if hasattr(d, "raw") and hasattr(d.raw, "read") and callable(getattr(d.raw, "read")):
            return d.raw.read()

        if hasattr(d, "raw") and hasattr(d.raw, "stream") and callable(getattr(d.raw, "stream")):
            return b"".join(d.raw.stream(1024 * 1024, decode_content=False))

        raise TypeError("Unsupported OCI get_object response type; no readable data attribute found.")
