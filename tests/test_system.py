from pathlib import Path
from unittest.mock import patch

import pytest

from nodebench.system.detect import PrerequisiteError, SystemInfo, check_prerequisites, detect, detect_os


def test_detect_fills_basics():
    info = detect()
    assert isinstance(info, SystemInfo)
    assert info.cpu_cores > 0
    assert info.ram_total_mb > 0
    assert info.architecture
    assert info.hostname


def test_detect_os_falls_back_to_platform():
    with patch("nodebench.system.detect._read", return_value=None):
        name, version = detect_os()
    assert name
    assert version == ""


def test_check_prerequisites_creates_directory(tmp_path):
    target = tmp_path / "a" / "b"
    check_prerequisites(str(target))
    assert target.is_dir()
    assert list(target.iterdir()) == []


def test_check_prerequisites_unwritable(tmp_path):
    with patch.object(Path, "write_bytes", side_effect=PermissionError("read-only")):
        with pytest.raises(PrerequisiteError, match="cannot write"):
            check_prerequisites(str(tmp_path))


def test_check_prerequisites_uncreatable(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(PrerequisiteError, match="cannot create"):
        check_prerequisites(str(blocker / "sub"))
