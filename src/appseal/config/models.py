"""Typed configuration sections for ``appseal.yaml``.

Every section has defaults, so an empty or missing config file yields a
working configuration. Unknown keys are rejected and values are checked
strictly (``"yes"`` is not a boolean), since a typo in a config file
should not silently fall back to a default.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any, Literal, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from appseal.core.archive.reader import DEFAULT_EXCLUDED_SUFFIXES
from appseal.core.news.templates import NewsTemplate
from appseal.core.seal.signing import Ed25519Signer, HmacSigner, Signer
from appseal.exceptions import ConfigError

SignatureAlgorithm = Literal["hmac-sha256", "ed25519"]


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ReaderConfig(_Section):
    excluded_suffixes: list[StrictStr] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_SUFFIXES)
    )


class SealConfig(_Section):
    """Seal issuing settings.

    Key material is never stored in the config file. For HMAC the key is
    read from the environment variable named by ``key_env``; for Ed25519
    from the PEM file at ``key_file``.
    """

    issuer: StrictStr = "appseal"
    signature_algorithm: SignatureAlgorithm = "hmac-sha256"
    key_env: StrictStr = "APPSEAL_HMAC_KEY"
    key_file: StrictStr | None = None

    def build_signer(self, environ: Mapping[str, str] | None = None) -> Signer:
        """Construct the configured signer.

        Raises:
            ConfigError: If the key material is missing or unreadable.
        """
        if self.signature_algorithm == "ed25519":
            if not self.key_file:
                raise ConfigError("'seal.key_file' is required for ed25519 seals")
            try:
                blob = Path(self.key_file).expanduser().read_bytes()
            except OSError as exc:
                raise ConfigError(f"Cannot read key file {self.key_file}: {exc}") from exc
            try:
                return Ed25519Signer.from_pem(blob)
            except ValueError as exc:
                raise ConfigError(f"Invalid key file {self.key_file}: {exc}") from exc

        env = os.environ if environ is None else environ
        key = env.get(self.key_env, "")
        if not key:
            raise ConfigError(f"Environment variable {self.key_env} is not set")
        return HmacSigner(key.encode("utf-8"))


class CatalogConfig(_Section):
    name: StrictStr = ""
    identifier: StrictStr = ""
    strict_metadata: StrictBool = False
    require_seal: StrictBool = False
    keep_history: StrictBool = False


class NewsConfig(_Section):
    title: StrictStr | None = None
    title_update: StrictStr | None = None
    caption: StrictStr | None = None
    caption_update: StrictStr | None = None
    limit: StrictInt | None = None
    skip_beta: StrictBool = False

    def template(self) -> NewsTemplate:
        return NewsTemplate(
            title=self.title,
            title_update=self.title_update,
            caption=self.caption,
            caption_update=self.caption_update,
        )


class AppSealConfig(_Section):
    """Top-level configuration.

    ``source`` is the file the configuration was loaded from, or ``None``
    for built-in defaults. It is set by the loader, never by the file.
    """

    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    seal: SealConfig = Field(default_factory=SealConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    news: NewsConfig = Field(default_factory=NewsConfig)
    workers: Annotated[StrictInt, Field(ge=1)] | None = None

    _source: Path | None = PrivateAttr(default=None)

    @field_validator("reader", "seal", "catalog", "news", mode="before")
    @classmethod
    def empty_section(cls, value: Any) -> Any:
        # A section written with no keys parses as null.
        return {} if value is None else value

    @property
    def source(self) -> Path | None:
        return self._source

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: Path | None = None) -> AppSealConfig:
        """Validate a parsed config document.

        Raises:
            ConfigError: If the document is not a mapping, has unknown
                keys, or a value has the wrong type.
        """
        if not isinstance(data, Mapping):
            raise ConfigError("Config root must be a mapping")
        try:
            config = cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(_describe(exc)) from exc
        config._source = source
        return config


def _describe(exc: ValidationError) -> str:
    """Summarize every problem, e.g. ``'catalog.nmae': Extra inputs are not permitted``."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "config"
        problems.append(f"'{location}': {error['msg']}")
    return "; ".join(problems)
