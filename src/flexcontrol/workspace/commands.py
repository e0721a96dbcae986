# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Command lines for the flex_extract submit and prepare scripts.

flexcontrol builds the parameters of both scripts and can run them as
subprocesses, forwarding their output line by line to a callback.
"""

import logging
import os
import subprocess
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from flexcontrol.core.config import FlexExtractSettings
from flexcontrol.core.constants import Directives, WorkspaceLayout
from flexcontrol.core.exceptions import ExtractionProcessError, MissingResourceError, require_not_none
from flexcontrol.core.mixins import LoggingMixin
from flexcontrol.core.validation import validate_directory_exists, validate_file_exists
from flexcontrol.requests.manifest import parse_manifest
from flexcontrol.requests.retrieval import retrieve as _retrieve

from .pathnames import FlexExtractDir

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]


def feparams(controlfile: Union[str, Path], inputdir: Union[str, Path],
             outputdir: Union[str, Path]) -> List[str]:
    """Command line parameters shared by the submit and prepare scripts."""
    return [
        '--controlfile', str(controlfile),
        '--inputdir', str(inputdir),
        '--outputdir', str(outputdir),
    ]


def workspace_params(fedir: FlexExtractDir) -> List[str]:
    return feparams(fedir['controlfile'], fedir['input'], fedir['output'])


def find_ppid(input_dir: Union[str, Path]) -> str:
    """
    Process id of the retrieved fields.

    flex_extract names its ``.grb`` files with dot-separated fields, the
    fourth of which is the id of the process that retrieved them.

    Raises:
        MissingResourceError: If no matching ``.grb`` file exists
    """
    input_dir = validate_directory_exists(input_dir, "input directory")
    for name in sorted(os.listdir(input_dir)):
        if Path(name).suffix != WorkspaceLayout.GRIB_SUFFIX:
            continue
        parts = name.split('.')
        if len(parts) > WorkspaceLayout.PPID_FIELD_INDEX:
            return parts[WorkspaceLayout.PPID_FIELD_INDEX]
    raise MissingResourceError(f"No ECMWF file found in the input directory {input_dir}")


def add_exec_path(fedir: FlexExtractDir, settings: Optional[FlexExtractSettings] = None) -> Path:
    """
    Point the control file's EXEDIR at the calc_etadot executable directory.

    ``settings`` defaults to the run directory's own settings.

    Raises:
        ConfigurationError: If CALC_ETADOT_DIR is not configured
    """
    settings = settings or fedir.settings
    exedir = require_not_none(settings.calc_etadot_dir, "CALC_ETADOT_DIR")
    document = fedir.control()
    document.merge({Directives.EXEDIR: str(exedir)})
    return document.save()


def submit_command(fedir: FlexExtractDir) -> List[str]:
    settings = fedir.settings
    return [settings.python_executable, str(settings.submit_script), *workspace_params(fedir)]


def prepare_command(fedir: FlexExtractDir) -> List[str]:
    settings = fedir.settings
    ppid = find_ppid(fedir['input'])
    return [settings.python_executable, str(settings.prepare_script), *workspace_params(fedir), '--ppid', ppid]


def adapt_env(settings: FlexExtractSettings, base: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Environment for the flex_extract scripts.

    Starts from ``os.environ`` (or ``base``), adds the configured extra
    variables and prepends ``$CONDA_PREFIX/lib`` to the library search path.
    """
    run_env = dict(os.environ if base is None else base)
    run_env.update(settings.extra_env)

    conda_prefix = run_env.get('CONDA_PREFIX', '')
    if conda_prefix:
        if sys.platform == 'win32':
            conda_lib = os.path.join(conda_prefix, 'Library', 'bin')
            env_var = 'PATH'
        elif sys.platform == 'darwin':
            conda_lib = os.path.join(conda_prefix, 'lib')
            env_var = 'DYLD_LIBRARY_PATH'
        else:
            conda_lib = os.path.join(conda_prefix, 'lib')
            env_var = 'LD_LIBRARY_PATH'
        current = run_env.get(env_var, '')
        if conda_lib not in current.split(os.pathsep):
            run_env[env_var] = f"{conda_lib}{os.pathsep}{current}" if current else conda_lib
    return run_env


@dataclass
class ProcessResult:
    """Outcome of a flex_extract script run."""
    command: List[str]
    return_code: int
    duration_seconds: float = 0.0
    output: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.return_code == 0


class ExtractionRunner(LoggingMixin):
    """Runs flex_extract scripts with the adapted environment."""

    def __init__(self, settings: Optional[FlexExtractSettings] = None,
                 logger: Optional[logging.Logger] = None):
        self.settings = settings or FlexExtractSettings()
        if logger is not None:
            self.logger = logger

    def run(
        self,
        command: List[str],
        on_output: Optional[OutputCallback] = None,
        cwd: Optional[Path] = None,
    ) -> ProcessResult:
        """
        Run ``command``.

        Without ``on_output`` the child writes to the inherited stdout and
        stderr; with it, stdout and stderr are merged and each line (without
        its terminator) is passed to the callback as it arrives.

        Raises:
            ExtractionProcessError: If the command cannot be started or exits non-zero
        """
        start_time = time.time()
        run_env = adapt_env(self.settings)
        self.logger.debug(f"Executing: {' '.join(command)}")

        output: List[str] = []
        try:
            if on_output is None:
                completed = subprocess.run(command, cwd=cwd, env=run_env, check=False)
                return_code = completed.returncode
            else:
                with subprocess.Popen(
                    command,
                    cwd=cwd,
                    env=run_env,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    bufsize=1,
                ) as proc:
                    for line in proc.stdout:
                        line = line.rstrip('\n')
                        output.append(line)
                        on_output(line)
                    return_code = proc.wait()
        except OSError as e:
            self.logger.error(f"Could not start {command[0]}: {e}")
            raise ExtractionProcessError(f"Could not start {command[0]}: {e}") from e

        duration = time.time() - start_time
        result = ProcessResult(command=list(command), return_code=return_code,
                               duration_seconds=duration, output=output)
        if not result.success:
            self.logger.error(f"{Path(command[1]).name if len(command) > 1 else command[0]} "
                              f"exited with code {return_code}")
            raise ExtractionProcessError(
                f"Command failed with exit code {return_code}: {' '.join(command)}",
                return_code=return_code,
            )
        self.logger.info(f"Process completed successfully in {duration:.1f}s")
        return result


def submit(fedir: FlexExtractDir, on_output: Optional[OutputCallback] = None,
           runner: Optional[ExtractionRunner] = None) -> ProcessResult:
    """Set EXEDIR and run the flex_extract submit script for ``fedir``."""
    validate_file_exists(fedir.settings.submit_script, "flex_extract submit script")
    add_exec_path(fedir)
    runner = runner or ExtractionRunner(fedir.settings)
    return runner.run(submit_command(fedir), on_output=on_output)


def prepare(fedir: FlexExtractDir, on_output: Optional[OutputCallback] = None,
            runner: Optional[ExtractionRunner] = None) -> ProcessResult:
    """Set EXEDIR and run the flex_extract prepare script on the retrieved fields."""
    validate_file_exists(fedir.settings.prepare_script, "flex_extract prepare script")
    add_exec_path(fedir)
    command = prepare_command(fedir)
    runner = runner or ExtractionRunner(fedir.settings)
    return runner.run(command, on_output=on_output)


def retrieve_workspace(fedir: FlexExtractDir, polytope: bool = False) -> int:
    """
    Fetch every request of the run directory's manifest.

    Raises:
        MissingResourceError: If the manifest has not been produced yet
    """
    cpath = fedir.csvpath
    if not cpath.is_file():
        raise MissingResourceError(f"No flex_extract csv requests file found at {cpath}")
    requests = parse_manifest(cpath)
    return _retrieve(requests, polytope=polytope, address=fedir.settings.polytope_address)
