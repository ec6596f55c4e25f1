from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePath

from zusi_fpn.domain.exceptions import InvalidPathError


def _normalize(raw: str | PurePath) -> str:
    # Zusi files use Windows separators; configuration files may use either.
    return str(raw).replace("\\", "/")


@dataclass(frozen=True)
class ZusiEnvironment:
    """Resolves configuration paths and data-root-relative Zusi paths.

    data_dir is the Zusi user data root every generated reference is relative
    to; config_dir is the directory of the configuration file.
    """

    data_dir: Path
    config_dir: Path

    @classmethod
    def from_config_file(cls, config_path: Path, data_dir: str) -> ZusiEnvironment:
        config_dir = Path(os.path.abspath(config_path)).parent
        raw = Path(_normalize(data_dir))
        resolved = raw if raw.is_absolute() else config_dir / raw
        return cls(data_dir=Path(os.path.normpath(resolved)), config_dir=config_dir)

    def resolve_config_path(self, raw: str | PurePath) -> Path:
        """Resolve a path written in the configuration file.

        Relative paths are taken from the configuration directory, a leading
        "/" marks a path relative to the data directory. The result must lie
        inside the data directory.
        """
        text = _normalize(raw)
        if text.startswith("/"):
            candidate = self.data_dir / text.lstrip("/")
        else:
            candidate = self.config_dir / text
        return self._inside_data_dir(Path(os.path.normpath(candidate)), text)

    def resolve_zusi_path(self, zusi_path: str) -> Path:
        """Resolve a Dateiname reference stored inside a Zusi file."""
        text = _normalize(zusi_path).lstrip("/")
        return self._inside_data_dir(Path(os.path.normpath(self.data_dir / text)), zusi_path)

    def to_zusi_path(self, path: Path) -> str:
        """Express path relative to the data directory, with "/" separators."""
        full = Path(os.path.normpath(os.path.abspath(path)))
        try:
            return full.relative_to(self.data_dir).as_posix()
        except ValueError:
            raise InvalidPathError(f"{path} is not inside the data directory {self.data_dir}")

    def _inside_data_dir(self, path: Path, original: str) -> Path:
        try:
            path.relative_to(self.data_dir)
        except ValueError:
            raise InvalidPathError(
                f"{original!r} resolves to {path}, outside of the data directory {self.data_dir}"
            )
        return path
