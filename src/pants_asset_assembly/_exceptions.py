"""Exception hierarchy for the asset assembly plugin."""

from __future__ import annotations


class AssetAssemblyError(Exception):
    """Base for all asset assembly plugin errors."""


class NotFoundError(AssetAssemblyError):
    """No asset root holds a matching file or assembly."""

    def __init__(
        self,
        base_path: str,
        name: str,
        extension: str,
        asset_type: str,
        *,
        member: str | None = None,
    ):
        self.base_path = base_path
        self.name = name
        self.extension = extension
        self.asset_type = asset_type
        self.member = member
        request = (
            f"(base_path={base_path!r}, name={name!r}, "
            f"extension={extension!r}, type={asset_type!r})"
        )
        if member is not None:
            message = f"Assembly member {member!r} not found for {request}"
        else:
            message = f"No asset found for {request}"
        super().__init__(message)


class ManifestParseError(AssetAssemblyError):
    """An assembly.json or asset-manifest.json could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid manifest {path}: {reason}")


class ExpansionError(AssetAssemblyError):
    """An asset root specifier could not be expanded."""

    def __init__(self, spec: str, reason: str):
        self.spec = spec
        self.reason = reason
        super().__init__(f"Unable to expand asset root {spec!r}: {reason}")


class TransformError(AssetAssemblyError):
    """A member file could not be transformed into assembly output."""

    def __init__(self, path: str | None, reason: str):
        self.path = path
        self.reason = reason
        prefix = f"{path}: " if path else ""
        super().__init__(f"{prefix}{reason}")


class MinifyError(TransformError):
    """Script minification failed to parse its input."""


class InvalidRequestError(AssetAssemblyError):
    """An asset request names a location outside the asset roots."""

    def __init__(self, base_path: str, reason: str):
        self.base_path = base_path
        self.reason = reason
        super().__init__(f"Invalid base_path {base_path!r}: {reason}")
