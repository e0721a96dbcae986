# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
flex_extract run directories.

A run directory holds an ``input/`` directory (retrieved fields and the
request manifest), an ``output/`` directory and a control file.
"""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple, Union

from flexcontrol.control.area import set_area as _set_area
from flexcontrol.control.document import ControlDocument
from flexcontrol.control.ensemble import set_ensemble_rest as _set_ensemble_rest
from flexcontrol.control.steps import set_steps as _set_steps
from flexcontrol.core.config import FlexExtractSettings
from flexcontrol.core.constants import WorkspaceLayout
from flexcontrol.core.exceptions import MissingResourceError
from flexcontrol.core.mixins import LoggingMixin
from flexcontrol.core.validation import validate_directory_exists, validate_file_exists

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class FePathnames:
    """
    Paths of a run directory, relative to ``dirpath`` unless absolute.

    ``pathnames['input']`` resolves a name to an absolute path.
    """
    dirpath: Path
    controlfile: str
    input: str = WorkspaceLayout.INPUT_DIR
    output: str = WorkspaceLayout.OUTPUT_DIR

    _NAMES = ('input', 'output', 'controlfile')

    def __getitem__(self, name: str) -> Path:
        if name not in self._NAMES:
            raise KeyError(name)
        return (Path(self.dirpath) / getattr(self, name)).resolve()

    def __setitem__(self, name: str, value: str) -> None:
        if name not in self._NAMES:
            raise KeyError(name)
        setattr(self, name, value)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        for name in self._NAMES:
            yield name, getattr(self, name)


@dataclass
class FlexExtractDir(LoggingMixin):
    """A flex_extract run directory."""
    path: Path
    pathnames: FePathnames
    settings: FlexExtractSettings = field(default_factory=FlexExtractSettings, repr=False)

    def __getitem__(self, name: str) -> Path:
        return self.pathnames[name]

    def __setitem__(self, name: str, value: str) -> None:
        self.pathnames[name] = value

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_directory(
        cls,
        path: PathLike,
        controlfile: Optional[PathLike] = None,
        input: str = WorkspaceLayout.INPUT_DIR,
        output: str = WorkspaceLayout.OUTPUT_DIR,
        settings: Optional[FlexExtractSettings] = None,
    ) -> 'FlexExtractDir':
        """
        Open an existing run directory.

        Without ``controlfile`` the first entry (in name order) whose name
        contains ``CONTROL`` is used.

        Raises:
            MissingResourceError: If the directory or a control file is missing
        """
        path = validate_directory_exists(path, "flex_extract directory").resolve()
        if controlfile is None:
            controlfile = find_control_file(path)
        else:
            controlfile = os.path.relpath(Path(controlfile).resolve(), path)
        pathnames = FePathnames(dirpath=path, controlfile=str(controlfile), input=input, output=output)
        return cls(path=path, pathnames=pathnames, settings=settings or FlexExtractSettings())

    @classmethod
    def create(
        cls,
        path: PathLike,
        control: Optional[str] = None,
        force: bool = False,
        settings: Optional[FlexExtractSettings] = None,
    ) -> 'FlexExtractDir':
        """
        Create a run directory from a control template of the installation.

        Args:
            path: Directory to create (parents included)
            control: Template name under ``Run/Control``; defaults to the
                settings' default control
            force: Overwrite an existing control file of the same name
            settings: Installation settings

        Raises:
            MissingResourceError: If the template does not exist
            FileExistsError: If the control file exists and ``force`` is False
        """
        settings = settings or FlexExtractSettings()
        template = validate_file_exists(settings.control_template(control), "control template")

        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        (path / WorkspaceLayout.INPUT_DIR).mkdir(exist_ok=True)
        (path / WorkspaceLayout.OUTPUT_DIR).mkdir(exist_ok=True)

        dest = path / template.name
        if dest.exists() and not force:
            raise FileExistsError(f"Control file already exists: {dest} (use force=True to overwrite)")
        shutil.copyfile(template, dest)
        dest.chmod(WorkspaceLayout.CONTROL_FILE_MODE)
        logger.info(f"Created flex_extract directory {path} with control {template.name}")
        return cls.from_directory(path, controlfile=dest, settings=settings)

    @classmethod
    def temporary(cls, control: Optional[str] = None,
                  settings: Optional[FlexExtractSettings] = None) -> 'FlexExtractDir':
        """Create a run directory in a fresh temporary directory."""
        return cls.create(tempfile.mkdtemp(prefix='flexextract_'), control=control, settings=settings)

    # ------------------------------------------------------------------
    # Control document
    # ------------------------------------------------------------------

    def control(self) -> ControlDocument:
        return ControlDocument.load(self['controlfile'])

    def set_area(self, area: Sequence[float], grid: Optional[float] = None) -> ControlDocument:
        """Load the control document and set its area; the result is not saved."""
        return _set_area(self.control(), area, grid=grid)

    def set_steps(self, start, end, timestep) -> ControlDocument:
        """Load the control document and set its steps; the result is not saved."""
        return _set_steps(self.control(), start, end, timestep)

    def set_ensemble_rest(self, rng=None) -> ControlDocument:
        """Load the control document and sample ensemble members; the result is not saved."""
        return _set_ensemble_rest(self.control(), rng=rng)

    # ------------------------------------------------------------------
    # Request manifest
    # ------------------------------------------------------------------

    @property
    def csvpath(self) -> Path:
        return self['input'] / WorkspaceLayout.MANIFEST_NAME

    def save_request(self) -> Path:
        """
        Copy the request manifest into the run directory root.

        Raises:
            MissingResourceError: If the manifest has not been produced yet
        """
        source = validate_file_exists(self.csvpath, "request manifest")
        dest = Path(self.path) / source.name
        shutil.copyfile(source, dest)
        self.logger.debug(f"Copied request manifest to {dest}")
        return dest

    def __repr__(self) -> str:
        names = ', '.join(f"{k}={v}" for k, v in self.pathnames)
        return f"FlexExtractDir({self.path}; {names})"


def find_control_file(path: PathLike) -> str:
    """
    Name of the first entry of ``path`` containing ``CONTROL``.

    Raises:
        MissingResourceError: If there is none
    """
    for name in sorted(os.listdir(path)):
        if WorkspaceLayout.CONTROL_MARKER in name:
            return name
    raise MissingResourceError(f"No control file has been found in {path}")
