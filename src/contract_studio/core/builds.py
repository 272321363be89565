import logging
from collections.abc import Iterable
from typing import Any

from contract_studio.errors import InvalidIndex
from contract_studio.models import CompilerBuild

logger = logging.getLogger(__name__)

NO_SELECTION = -1


class BuildRegistry:
    """Selectable compiler builds and which of them is selected."""

    def __init__(self, builds: Iterable[CompilerBuild] = ()) -> None:
        self._builds: list[CompilerBuild] = list(builds)
        self.selected_index = NO_SELECTION

    @property
    def builds(self) -> tuple[CompilerBuild, ...]:
        return tuple(self._builds)

    def __len__(self) -> int:
        return len(self._builds)

    def __getitem__(self, index: int) -> CompilerBuild:
        self._check_index(index)
        return self._builds[index]

    def load(self, builds: Iterable[CompilerBuild]) -> None:
        self._builds = list(builds)
        self.selected_index = NO_SELECTION
        logger.info("Loaded %d compiler build(s)", len(self._builds))

    def select(self, index: int) -> None:
        self._check_index(index)
        self.selected_index = index

    def mark_ready(self, index: int) -> None:
        self._check_index(index)
        build = self._builds[index]
        if not build.ready:
            self._builds[index] = build.model_copy(update={"ready": True})
            logger.info("Compiler build %s is ready", build.long_version)

    @property
    def selected(self) -> CompilerBuild | None:
        if self.selected_index == NO_SELECTION:
            return None
        return self._builds[self.selected_index]

    @property
    def is_selected_ready(self) -> bool:
        build = self.selected
        return build is not None and build.ready

    def index_of(self, version: str) -> int:
        """Return the index of the build matching *version* (short or long form), or -1."""
        for index, build in enumerate(self._builds):
            if version in (build.version, build.long_version):
                return index
        return NO_SELECTION

    def latest_release_index(self) -> int:
        for index, build in enumerate(self._builds):
            if build.is_release:
                return index
        return 0 if self._builds else NO_SELECTION

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._builds):
            raise InvalidIndex(index, len(self._builds))


def builds_from_list(list_json: dict[str, Any], base_url: str = "") -> list[CompilerBuild]:
    """Build the registry contents from a solc-bin style ``list.json`` document.

    Builds are returned newest first. A build is a release when the
    ``releases`` map points its version at the build's own path.
    """
    releases: dict[str, str] = list_json.get("releases") or {}
    prefix = base_url.rstrip("/")
    builds = []
    for entry in reversed(list_json.get("builds") or []):
        path = entry.get("path", "")
        version = entry.get("version", "")
        builds.append(
            CompilerBuild(
                version=version,
                long_version=entry.get("longVersion") or version,
                is_release=releases.get(version) == path,
                download_url=f"{prefix}/{path}" if prefix else path,
            )
        )
    return builds
