"""
Root conftest.py - fixtures shared across all tests.

Puts ``src/`` on the path so the tests run from a plain checkout and provides
control files, manifests and a fake flex_extract installation.
"""

from pathlib import Path
import sys

import pytest

SRC_DIR = Path(__file__).parent.parent.resolve() / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from flexcontrol.core.config import FlexExtractSettings  # noqa: E402


OPER_CONTROL_TEXT = (
    "START_DATE 20200101\n"
    "DTIME 3\n"
    "TYPE AN FC FC FC AN FC FC FC\n"
    "TIME 00 00 00 00 12 12 12 12\n"
    "STEP 00 03 06 09 00 03 06 09\n"
    "CLASS OD\n"
    "STREAM OPER\n"
    "GRID 0.1\n"
    "LEFT -15.\n"
    "LOWER 30.\n"
    "UPPER 75.\n"
    "RIGHT 45.\n"
    "LEVELIST 1/to/137\n"
    "RESOL 1279\n"
    "ETA 1\n"
    "FORMAT GRIB2\n"
    "PREFIX EN\n"
)

MANIFEST_TEXT = (
    "request_number, accuracy, area, dataset, date, expver, gaussian, grid, levelist, "
    "levtype, marsclass, number, param, repres, resol, step, stream, target, time, type\n"
    "1, 24, 75.0/-15.0/30.0/45.0, , 20200101/to/20200101, 1, , 0.1/0.1, 1, "
    "SFC, OD, OFF, 141.128/151.128, , 1279, 000, OPER, /tmp/ANOG__SL.grb, 00/12, AN\n"
    "2, 24, 75.0/-15.0/30.0/45.0, , 20200101/to/20200101, 1, reduced, 0.1/0.1, 1/to/137, "
    "ML, OD, OFF, 130.128, , 1279, 000, OPER, /tmp/ANOG__ML.grb, 00/12, AN\n"
    "3, 24, 75.0/-15.0/30.0/45.0, , 20200101/to/20200101, 1, , 0.1/0.1, 1, "
    "SFC, EA, OFF, 142.128, , 1279, 003/to/009/by/3, OPER, /tmp/OG_acc_SL.grb, 00/12, FC\n"
)


@pytest.fixture
def control_text():
    return OPER_CONTROL_TEXT


@pytest.fixture
def control_file(tmp_path):
    path = tmp_path / "CONTROL_OD.OPER.FC.eta.highres"
    path.write_text(OPER_CONTROL_TEXT)
    return path


@pytest.fixture
def manifest_file(tmp_path):
    path = tmp_path / "mars_requests.csv"
    path.write_text(MANIFEST_TEXT)
    return path


@pytest.fixture
def flex_extract_root(tmp_path):
    """A fake flex_extract installation with one control template and both scripts."""
    root = tmp_path / "flex_extract_v7.1.2"
    control_dir = root / "Run" / "Control"
    control_dir.mkdir(parents=True)
    (control_dir / "CONTROL_OD.OPER.FC.eta.highres").write_text(OPER_CONTROL_TEXT)
    (control_dir / "CONTROL_OD.ENFO.PF.36hours").write_text(
        OPER_CONTROL_TEXT.replace("STREAM OPER", "STREAM ENFO")
    )
    scripts = root / "Source" / "Python"
    (scripts / "Mods").mkdir(parents=True)
    (scripts / "submit.py").write_text("")
    (scripts / "Mods" / "prepare_flexpart.py").write_text("")
    return root


@pytest.fixture
def settings(flex_extract_root, tmp_path):
    return FlexExtractSettings(
        FLEX_EXTRACT_DIR=flex_extract_root,
        CALC_ETADOT_DIR=tmp_path / "calc_etadot" / "bin",
        FLEX_PYTHON="python3",
    )
