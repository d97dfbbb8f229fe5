"""Pydantic models for runtime build requests.

The same model backs the JSON endpoint, the query-string endpoints and
the CLI, so every frontend applies identical validation.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from jlink_online.types import (
    COORDINATE_PATTERN,
    Architecture,
    Endian,
    Implementation,
    Platform,
)

MODULE_PATTERN = re.compile(r"^[\w.]+$")

# Architectures whose runtimes are big-endian
BIG_ENDIAN_ARCHITECTURES = frozenset({"ppc64", "s390x"})


def _choices(enum: type) -> str:
    return ", ".join(member.value for member in enum)


def guess_endian(arch: str) -> str:
    """Return the byte order a target architecture most likely uses."""
    if arch in BIG_ENDIAN_ARCHITECTURES:
        return Endian.BIG.value
    return Endian.LITTLE.value


class RuntimeRequest(BaseModel):
    """A request for a custom runtime image.

    Attributes:
        arch: Target architecture (e.g., 'x64').
        platform: Target operating system, 'os' on the wire.
        version: Version token (concrete version or lts/ga/ea).
        implementation: JVM implementation.
        endian: Target byte order; guessed from arch when omitted.
        modules: Modules to link.
        artifacts: Maven Central artifacts in G:A:V form.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    arch: str = Field(description="Target architecture")
    platform: str = Field(alias="os", description="Target operating system")
    version: str = Field(description="Java version or alias")
    implementation: str = Field(default=Implementation.HOTSPOT.value)
    endian: str | None = Field(default=None)
    modules: list[str] = Field(default_factory=lambda: ["java.base"])
    artifacts: list[str] = Field(default_factory=list)

    @field_validator("arch")
    @classmethod
    def validate_arch(cls, v: str) -> str:
        """Validate arch is a known architecture."""
        if v not in {a.value for a in Architecture}:
            raise ValueError(f"Valid architectures: [{_choices(Architecture)}]")
        return v

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: str) -> str:
        """Validate platform is a known operating system."""
        if v not in {p.value for p in Platform}:
            raise ValueError(f"Valid operating systems: [{_choices(Platform)}]")
        return v

    @field_validator("implementation")
    @classmethod
    def validate_implementation(cls, v: str) -> str:
        if v not in {i.value for i in Implementation}:
            raise ValueError(
                f"Valid implementation types: [{_choices(Implementation)}]"
            )
        return v

    @field_validator("endian")
    @classmethod
    def validate_endian(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        if v not in {e.value for e in Endian}:
            raise ValueError(f"Valid endian types: [{_choices(Endian)}]")
        return v

    @field_validator("modules")
    @classmethod
    def validate_modules(cls, v: list[str]) -> list[str]:
        """Validate module names and default to java.base when empty."""
        for module in v:
            if not MODULE_PATTERN.match(module):
                raise ValueError(f"Invalid module: {module}")
        return v or ["java.base"]

    @field_validator("artifacts")
    @classmethod
    def validate_artifacts(cls, v: list[str]) -> list[str]:
        for artifact in v:
            if not COORDINATE_PATTERN.match(artifact):
                raise ValueError(f"Invalid artifact: {artifact}")
        return v

    @model_validator(mode="after")
    def fill_endian(self) -> "RuntimeRequest":
        """Guess the byte order from the architecture when not given."""
        if self.endian is None:
            self.endian = guess_endian(self.arch)
        return self


def split_list(value: str | None) -> list[str]:
    """Split a comma-separated query value, dropping empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


__all__ = [
    "BIG_ENDIAN_ARCHITECTURES",
    "MODULE_PATTERN",
    "RuntimeRequest",
    "guess_endian",
    "split_list",
]
