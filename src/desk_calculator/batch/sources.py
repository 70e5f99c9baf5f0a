"""Read arithmetic expressions from a text file or an archive."""
from pathlib import Path
import tarfile
import tempfile
from typing import List
import zipfile

import py7zr
from pydantic import BaseModel, ConfigDict, Field, FilePath


def split_expressions(content: str) -> List[str]:
    """
    Split text into expressions, one per line.

    :param str content: Raw file content

    :return: List of stripped, non-empty lines
    :rtype: List[str]
    """
    return [line.strip() for line in content.splitlines() if line.strip()]


class ExpressionSource(BaseModel):
    """
    File holding arithmetic expressions, one per line.

    Supported inputs:
    - a plain ``.txt`` file
    - a ``.zip``, ``.tar.xz`` or ``.7z`` archive, from which the first ``.txt`` member is read
    """

    model_config = ConfigDict(frozen=True)

    path: FilePath = Field(..., description="Path to the text file or archive")

    def read_text(self) -> str:
        """
        Return the text content of the source.

        :rtype: str
        :raises ValueError: If the archive format is unsupported or contains no .txt file
        """
        if self.path.suffix == ".txt":
            return self.path.read_text(encoding="utf-8")
        return self._extract_archive(self.path)

    def expressions(self) -> List[str]:
        """Return the non-empty lines of the source."""
        return split_expressions(self.read_text())

    @staticmethod
    def _extract_archive(archive_path: Path) -> str:
        """
        Extract the first .txt file found in a supported archive and return its content as a string.

        :param Path archive_path: Path to the archive file

        :return: Content of the extracted .txt file
        :rtype: str
        :raises ValueError: If no .txt file is found or format is unsupported
        """
        # Extract into a temporary directory, removed once the text is read
        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir)
            if archive_path.suffix == ".zip":
                with zipfile.ZipFile(archive_path, "r") as zf:
                    txt_files = [f for f in zf.namelist() if f.endswith(".txt")]
                    if not txt_files:
                        raise ValueError(f"📄❌ No .txt file found in zip archive {archive_path}")
                    zf.extract(txt_files[0], path=tmpdir_path)
                    return (tmpdir_path / txt_files[0]).read_text(encoding="utf-8")

            if archive_path.suffixes[-2:] == [".tar", ".xz"]:
                with tarfile.open(archive_path, "r:xz") as tf:
                    members = [m for m in tf.getmembers() if m.isfile() and m.name.endswith(".txt")]
                    if not members:
                        raise ValueError(f"📄❌ No .txt file found in tar.xz archive {archive_path}")
                    tf.extract(members[0], path=tmpdir_path, filter="data")
                    return (tmpdir_path / members[0].name).read_text(encoding="utf-8")

            if archive_path.suffix == ".7z":
                with py7zr.SevenZipFile(archive_path, mode="r") as archive:
                    txt_files = [f for f in archive.getnames() if f.endswith(".txt")]
                    if not txt_files:
                        raise ValueError(f"📄❌ No .txt file found in 7z archive {archive_path}")
                    archive.extract(path=tmpdir_path, targets=[txt_files[0]])
                    return (tmpdir_path / txt_files[0]).read_text(encoding="utf-8")

            raise ValueError(f"📄❌ Unsupported input format: {''.join(archive_path.suffixes)}")
