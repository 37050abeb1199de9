"""Tests for the georef command-line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from poc_georef.cli import app
from poc_georef.reference_points import ReferenceSet

runner = CliRunner()

SQUARE = [
    ("10", "10", "0", "0"),
    ("110", "10", "100", "0"),
    ("10", "110", "0", "100"),
]


def invoke(*args: str, input: str | None = None):
    return runner.invoke(app, list(args), input=input)


@pytest.fixture
def session_file(tmp_path: Path) -> Path:
    return tmp_path / "session.json"


@pytest.fixture
def square_session(session_file: Path) -> Path:
    """Session file holding the 1:1 square calibration."""
    for image_x, image_y, real_x, real_y in SQUARE:
        result = invoke(
            "points", "add",
            "--image-x", image_x, "--image-y", image_y,
            "--real-x", real_x, "--real-y", real_y,
            "--session", str(session_file),
        )
        assert result.exit_code == 0, result.output
    return session_file


class TestPointsCommands:

    def test_add_creates_session_file(self, session_file: Path) -> None:
        result = invoke(
            "points", "add", "--image-x", "1", "--image-y", "2", "--real-x", "3", "--real-y", "4",
            "--session", str(session_file),
        )

        assert result.exit_code == 0
        assert "Added point 1" in result.output
        assert len(ReferenceSet.load(session_file)) == 1

    def test_add_rejects_nan(self, session_file: Path) -> None:
        result = invoke(
            "points", "add", "--image-x", "1", "--image-y", "2", "--real-x", "nan", "--real-y", "4",
            "--session", str(session_file),
        )

        assert result.exit_code == 1
        assert "finite" in result.output
        assert not session_file.exists()

    def test_list_marks_transform_points(self, square_session: Path) -> None:
        invoke(
            "points", "add", "--image-x", "60", "--image-y", "60", "--real-x", "50", "--real-y", "50",
            "--session", str(square_session),
        )

        result = invoke("points", "list", "--session", str(square_session))

        lines = result.output.strip().splitlines()
        assert result.exit_code == 0
        assert len(lines) == 4
        assert all(line.startswith("* Point") for line in lines[:3])
        assert lines[3].startswith("  Point 4")
        assert "image=(60.0, 60.0)" in lines[3]

    def test_list_empty(self, session_file: Path) -> None:
        result = invoke("points", "list", "--session", str(session_file))
        assert "No reference points" in result.output

    def test_edit_by_id_prefix(self, square_session: Path) -> None:
        point_id = ReferenceSet.load(square_session)[1].id

        result = invoke(
            "points", "edit", "--id", point_id[:6], "--real-x", "200", "--real-y", "0",
            "--session", str(square_session),
        )

        assert result.exit_code == 0, result.output
        point = ReferenceSet.load(square_session).get(point_id)
        assert point.real.x == 200.0
        assert point.image.x == 110.0

    def test_edit_requires_both_image_coordinates(self, square_session: Path) -> None:
        point_id = ReferenceSet.load(square_session)[0].id

        result = invoke(
            "points", "edit", "--id", point_id, "--real-x", "1", "--real-y", "1", "--image-x", "5",
            "--session", str(square_session),
        )

        assert result.exit_code == 1
        assert "together" in result.output

    def test_delete(self, square_session: Path) -> None:
        point_id = ReferenceSet.load(square_session)[0].id

        result = invoke("points", "delete", "--id", point_id, "--session", str(square_session))

        assert result.exit_code == 0
        assert "2 remaining" in result.output
        assert point_id not in ReferenceSet.load(square_session)

    def test_delete_unknown_id(self, square_session: Path) -> None:
        result = invoke("points", "delete", "--id", "zzzz", "--session", str(square_session))

        assert result.exit_code == 1
        assert "No reference point" in result.output
        assert len(ReferenceSet.load(square_session)) == 3

    def test_clear_with_yes(self, square_session: Path) -> None:
        result = invoke("points", "clear", "--yes", "--session", str(square_session))

        assert result.exit_code == 0
        assert len(ReferenceSet.load(square_session)) == 0

    def test_clear_declined(self, square_session: Path) -> None:
        result = invoke("points", "clear", "--session", str(square_session), input="n\n")

        assert result.exit_code != 0
        assert len(ReferenceSet.load(square_session)) == 3

    def test_invalid_session_file(self, session_file: Path) -> None:
        session_file.write_text("{not json")

        result = invoke("points", "list", "--session", str(session_file))

        assert result.exit_code == 1
        assert "Invalid session file" in result.output

    @pytest.mark.parametrize(
        "content",
        ["[]", '"points"', '{"points": [[1, 2, 3, 4]]}'],
        ids=["list-root", "string-root", "point-not-mapping"],
    )
    def test_session_file_with_wrong_shape(self, session_file: Path, content: str) -> None:
        session_file.write_text(content)

        result = invoke("points", "list", "--session", str(session_file))

        assert result.exit_code == 1
        assert "Invalid session file" in result.output


class TestImportExport:

    def test_import_skips_bad_rows(self, session_file: Path, tmp_path: Path) -> None:
        csv_file = tmp_path / "survey.csv"
        csv_file.write_text(
            "coulmn[pixel],row[pixel],Longitude [DD],Latitude [DD]\n"
            "10,10,0,0\n"
            "110,10,100,0\n"
            "60,60,,50\n"
            "10,110,0,100\n"
        )

        result = invoke("points", "import", "--csv", str(csv_file), "--session", str(session_file))

        assert result.exit_code == 0
        assert "Imported 3 reference points (1 rows skipped)" in result.output
        assert len(ReferenceSet.load(session_file)) == 3

    def test_import_missing_csv(self, session_file: Path, tmp_path: Path) -> None:
        result = invoke(
            "points", "import", "--csv", str(tmp_path / "missing.csv"), "--session", str(session_file)
        )

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_import_with_config_columns(self, session_file: Path, tmp_path: Path) -> None:
        config_file = tmp_path / "georef.yaml"
        config_file.write_text(
            "georef:\n"
            "  import_columns:\n"
            "    image_x: u\n"
            "    image_y: v\n"
            "    real_x: lon\n"
            "    real_y: lat\n"
        )
        csv_file = tmp_path / "points.csv"
        csv_file.write_text("u,v,lon,lat\n1,2,3,4\n")

        result = invoke(
            "points", "import", "--csv", str(csv_file), "--config", str(config_file),
            "--session", str(session_file),
        )

        assert result.exit_code == 0, result.output
        assert "Imported 1 reference points" in result.output

    def test_export_all_to_default_file(
        self, square_session: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)

        result = invoke("points", "export", "--session", str(square_session))

        assert result.exit_code == 0
        lines = (tmp_path / "selected_points.csv").read_text().splitlines()
        assert lines[0] == "imageX,imageY,realX,realY"
        assert len(lines) == 4

    def test_export_selected_ids(self, square_session: Path, tmp_path: Path) -> None:
        reference_set = ReferenceSet.load(square_session)
        output = tmp_path / "out.csv"

        result = invoke(
            "points", "export", "--output", str(output),
            "--id", reference_set[2].id, "--id", reference_set[0].id[:8],
            "--session", str(square_session),
        )

        assert result.exit_code == 0
        assert "Exported 2 reference points" in result.output
        assert output.read_text().splitlines()[1:] == ["10.0,10.0,0.0,0.0", "10.0,110.0,0.0,100.0"]


class TestTransformCommands:

    def test_to_real(self, square_session: Path) -> None:
        result = invoke("transform", "to-real", "--x", "60", "--y", "60", "--session", str(square_session))

        assert result.exit_code == 0
        assert result.output.strip() == "50.000000, 50.000000"

    def test_to_image(self, square_session: Path) -> None:
        result = invoke("transform", "to-image", "--x", "50", "--y", "50", "--session", str(square_session))

        assert result.exit_code == 0
        assert result.output.strip() == "60.0, 60.0"

    def test_show(self, square_session: Path) -> None:
        result = invoke("transform", "show", "--session", str(square_session))

        assert result.exit_code == 0
        assert "Forward (real → image):" in result.output
        assert "GDAL geotransform:" in result.output
        assert "Point 3 [fit]" in result.output

    def test_unavailable_with_two_points(self, square_session: Path) -> None:
        point_id = ReferenceSet.load(square_session)[2].id
        invoke("points", "delete", "--id", point_id, "--session", str(square_session))

        result = invoke("transform", "to-real", "--x", "1", "--y", "1", "--session", str(square_session))

        assert result.exit_code == 1
        assert "Transform unavailable" in result.output

    def test_collinear_points(self, session_file: Path) -> None:
        for i in range(3):
            invoke(
                "points", "add",
                "--image-x", str(i * 10), "--image-y", str(i * 10),
                "--real-x", str(i), "--real-y", str(i * 2 + 1),
                "--session", str(session_file),
            )

        result = invoke("transform", "show", "--session", str(session_file))

        assert result.exit_code == 1
        assert "collinear" in result.output
