"""Tests for flexcontrol.workspace.commands."""

import os
import shutil
import sys
from unittest.mock import MagicMock

import pytest

from flexcontrol.core.config import FlexExtractSettings
from flexcontrol.core.exceptions import (
    ConfigurationError,
    ExtractionProcessError,
    MissingResourceError,
)
from flexcontrol.workspace import commands
from flexcontrol.workspace.commands import (
    ExtractionRunner,
    ProcessResult,
    adapt_env,
    add_exec_path,
    feparams,
    find_ppid,
    prepare,
    prepare_command,
    retrieve_workspace,
    submit,
    submit_command,
)
from flexcontrol.workspace.pathnames import FlexExtractDir


@pytest.fixture
def fedir(tmp_path, settings):
    return FlexExtractDir.create(tmp_path / "run", settings=settings)


@pytest.fixture
def runner():
    mock_runner = MagicMock(spec=ExtractionRunner)
    mock_runner.run.return_value = ProcessResult(command=[], return_code=0)
    return mock_runner


# =============================================================================
# Parameters and commands
# =============================================================================

class TestFeparams:
    """Tests for the shared script parameters."""

    def test_order(self):
        assert feparams("/run/CONTROL", "/run/input", "/run/output") == [
            "--controlfile", "/run/CONTROL",
            "--inputdir", "/run/input",
            "--outputdir", "/run/output",
        ]

    def test_paths_converted(self, tmp_path):
        params = feparams(tmp_path / "C", tmp_path / "i", tmp_path / "o")
        assert all(isinstance(p, str) for p in params)


class TestFindPpid:
    """Tests for reading the process id from retrieved field names."""

    def test_fourth_field(self, tmp_path):
        (tmp_path / "ENOG.20200101.00.12345.grb").write_bytes(b"")
        assert find_ppid(tmp_path) == "12345"

    def test_other_files_ignored(self, tmp_path):
        (tmp_path / "a.b.c.d.txt").write_text("")
        (tmp_path / "short.grb").write_bytes(b"")
        (tmp_path / "OG_acc_SL.20200101.00.777.grb").write_bytes(b"")
        assert find_ppid(tmp_path) == "777"

    def test_no_grib_file(self, tmp_path):
        (tmp_path / "notes.txt").write_text("")
        with pytest.raises(MissingResourceError, match="No ECMWF file"):
            find_ppid(tmp_path)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(MissingResourceError):
            find_ppid(tmp_path / "missing")


class TestAddExecPath:
    """Tests for setting EXEDIR."""

    def test_sets_exedir_and_saves(self, fedir, settings):
        add_exec_path(fedir)
        assert fedir.control()["EXEDIR"] == str(settings.calc_etadot_dir)

    def test_other_directives_kept(self, fedir):
        before = fedir.control()
        add_exec_path(fedir)
        after = fedir.control()
        assert list(after)[:-1] == list(before)
        assert after["CLASS"] == before["CLASS"]

    def test_unconfigured(self, fedir, flex_extract_root):
        fedir.settings = FlexExtractSettings(FLEX_EXTRACT_DIR=flex_extract_root)
        with pytest.raises(ConfigurationError, match="CALC_ETADOT_DIR"):
            add_exec_path(fedir)

    def test_explicit_settings(self, fedir, flex_extract_root, tmp_path):
        other = FlexExtractSettings(FLEX_EXTRACT_DIR=flex_extract_root, CALC_ETADOT_DIR=tmp_path / "other")
        add_exec_path(fedir, settings=other)
        assert fedir.control()["EXEDIR"] == str(tmp_path / "other")


class TestCommands:
    """Tests for the script command lines."""

    def test_submit_command(self, fedir, settings):
        command = submit_command(fedir)
        assert command[:2] == ["python3", str(settings.submit_script)]
        assert command[2:] == feparams(fedir["controlfile"], fedir["input"], fedir["output"])

    def test_prepare_command(self, fedir, settings):
        (fedir["input"] / "ENOG.20200101.00.4242.grb").write_bytes(b"")
        command = prepare_command(fedir)
        assert command[:2] == ["python3", str(settings.prepare_script)]
        assert command[-2:] == ["--ppid", "4242"]

    def test_prepare_command_without_fields(self, fedir):
        with pytest.raises(MissingResourceError):
            prepare_command(fedir)


# =============================================================================
# Environment
# =============================================================================

class TestAdaptEnv:
    """Tests for the script environment."""

    def test_extra_env_added(self, flex_extract_root):
        settings = FlexExtractSettings(FLEX_EXTRACT_DIR=flex_extract_root, EXTRA_ENV="A=1,B=two")
        env = adapt_env(settings, base={"PATH": "/usr/bin"})
        assert env == {"PATH": "/usr/bin", "A": "1", "B": "two"}

    def test_conda_library_path_prepended(self, monkeypatch):
        monkeypatch.setattr(commands.sys, "platform", "linux")
        env = adapt_env(FlexExtractSettings(), base={
            "CONDA_PREFIX": "/opt/conda",
            "LD_LIBRARY_PATH": "/usr/lib",
        })
        assert env["LD_LIBRARY_PATH"] == os.pathsep.join([os.path.join("/opt/conda", "lib"), "/usr/lib"])

    def test_conda_library_path_not_duplicated(self, monkeypatch):
        monkeypatch.setattr(commands.sys, "platform", "linux")
        lib = os.path.join("/opt/conda", "lib")
        env = adapt_env(FlexExtractSettings(), base={"CONDA_PREFIX": "/opt/conda", "LD_LIBRARY_PATH": lib})
        assert env["LD_LIBRARY_PATH"] == lib

    def test_base_not_modified(self):
        base = {"PATH": "/usr/bin"}
        adapt_env(FlexExtractSettings(EXTRA_ENV={"X": "1"}), base=base)
        assert base == {"PATH": "/usr/bin"}


# =============================================================================
# Runner
# =============================================================================

class TestExtractionRunner:
    """Tests for running scripts as subprocesses."""

    def test_success(self):
        result = ExtractionRunner().run([sys.executable, "-c", "pass"])
        assert result.success
        assert result.return_code == 0
        assert result.output == []

    def test_output_forwarded_line_by_line(self):
        lines = []
        result = ExtractionRunner().run(
            [sys.executable, "-c", "import sys; print('first'); print('second', file=sys.stderr)"],
            on_output=lines.append,
        )
        assert sorted(lines) == ["first", "second"]
        assert sorted(result.output) == ["first", "second"]

    def test_extra_env_visible_to_child(self):
        settings = FlexExtractSettings(EXTRA_ENV={"FLEXCONTROL_TEST_VAR": "hello"})
        lines = []
        ExtractionRunner(settings).run(
            [sys.executable, "-c", "import os; print(os.environ['FLEXCONTROL_TEST_VAR'])"],
            on_output=lines.append,
        )
        assert lines == ["hello"]

    def test_non_zero_exit(self):
        with pytest.raises(ExtractionProcessError) as exc_info:
            ExtractionRunner().run([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert exc_info.value.return_code == 3

    def test_non_zero_exit_with_callback(self):
        lines = []
        with pytest.raises(ExtractionProcessError):
            ExtractionRunner().run(
                [sys.executable, "-c", "import sys; print('boom'); sys.exit(1)"],
                on_output=lines.append,
            )
        assert lines == ["boom"]

    def test_cannot_start(self, tmp_path):
        with pytest.raises(ExtractionProcessError, match="Could not start"):
            ExtractionRunner().run([str(tmp_path / "no-such-binary")])


# =============================================================================
# Operations
# =============================================================================

class TestSubmit:
    """Tests for running the submit script."""

    def test_runs_submit_command(self, fedir, runner):
        callback = MagicMock()
        submit(fedir, on_output=callback, runner=runner)
        runner.run.assert_called_once_with(submit_command(fedir), on_output=callback)

    def test_sets_exedir_first(self, fedir, runner, settings):
        submit(fedir, runner=runner)
        assert fedir.control()["EXEDIR"] == str(settings.calc_etadot_dir)

    def test_missing_script(self, fedir, runner, settings):
        settings.submit_script.unlink()
        with pytest.raises(MissingResourceError):
            submit(fedir, runner=runner)
        runner.run.assert_not_called()


class TestPrepare:
    """Tests for running the prepare script."""

    def test_runs_prepare_command(self, fedir, runner):
        (fedir["input"] / "ENOG.20200101.00.99.grb").write_bytes(b"")
        prepare(fedir, runner=runner)
        command = runner.run.call_args.args[0]
        assert command[-2:] == ["--ppid", "99"]

    def test_without_retrieved_fields(self, fedir, runner):
        with pytest.raises(MissingResourceError):
            prepare(fedir, runner=runner)
        runner.run.assert_not_called()


class TestRetrieve:
    """Tests for retrieving the manifest requests of a run directory."""

    def test_missing_manifest(self, fedir):
        with pytest.raises(MissingResourceError, match="csv requests file"):
            retrieve_workspace(fedir)

    def test_dispatches_parsed_requests(self, fedir, manifest_file, monkeypatch):
        shutil.copyfile(manifest_file, fedir.csvpath)
        dispatch = MagicMock(return_value=3)
        monkeypatch.setattr(commands, "_retrieve", dispatch)

        assert retrieve_workspace(fedir, polytope=True) == 3
        requests = dispatch.call_args.args[0]
        assert [r.row_number for r in requests] == ["1", "2", "3"]
        assert dispatch.call_args.kwargs == {"polytope": True, "address": "polytope.ecmwf.int"}
