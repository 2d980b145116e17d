"""Atomic filesystem operations for G-code, image and YAML files.

Provides:
    - Line-preserving reads of G-code files
    - Atomic writes: tmp file → fsync → rename (no half-written G-code)
    - Atomic PNG export of debug renders
    - YAML loading for configuration

A failed run must never leave a truncated ``*_level.gcode`` behind that a
printer host could pick up, hence every write goes through a temp file in
the target directory followed by a rename.

Usage:
    from sparse_levelling.utils import fs
    lines = fs.read_lines("part.gcode")
    fs.atomic_write_lines("part_level.gcode", lines)
"""

import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import yaml
from PIL import Image


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory if it doesn't exist, return Path object."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_lines(path: Union[str, Path], encoding: str = "utf-8") -> List[str]:
    """Read a text file as a list of lines without line terminators.

    Parameters
    ----------
    path : Union[str, Path]
        File to read
    encoding : str
        Text encoding, default "utf-8"

    Returns
    -------
    List[str]
        Lines in file order, ``\\n`` / ``\\r\\n`` stripped.  Only those
        terminators split lines; form feeds and other Unicode line
        separators stay inside the line they appear in

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, 'r', encoding=encoding, newline='') as f:
        text = f.read()

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    tmp_suffix: str = ".tmp"
) -> None:
    """Write bytes to file atomically (tmp → fsync → rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Data to write
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Notes
    -----
    The tmp file lives in the target directory so the rename stays on
    one filesystem.
    """
    path = Path(path)
    ensure_dir(path.parent)

    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        # Overwrites existing file on POSIX
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(
    path: Union[str, Path],
    text: str,
    encoding: str = "utf-8"
) -> None:
    """Write text to file atomically."""
    atomic_write_bytes(path, text.encode(encoding))


def atomic_write_lines(
    path: Union[str, Path],
    lines: Iterable[str],
    newline: str = "\n",
    encoding: str = "utf-8"
) -> None:
    """Write lines atomically, terminating every line with *newline*.

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    lines : Iterable[str]
        Lines without terminators
    newline : str
        Line terminator, default "\\n"
    encoding : str
        Text encoding, default "utf-8"
    """
    text = "".join(f"{line}{newline}" for line in lines)
    atomic_write_text(path, text, encoding=encoding)


def atomic_save_image(
    img: np.ndarray,
    path: Union[str, Path],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save image atomically (prevents partial reads).

    Parameters
    ----------
    img : np.ndarray
        (H, W, 3) RGB or (H, W) grayscale; non-uint8 data is clipped
        to [0, 255]
    path : Union[str, Path]
        Target file path (extension determines format)
    pil_kwargs : Optional[Dict[str, Any]]
        Additional kwargs for PIL.Image.save (e.g., optimize=True)
    """
    path = Path(path)
    pil_kwargs = pil_kwargs or {}
    ensure_dir(path.parent)

    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    if img.ndim == 3 and img.shape[2] == 1:
        img = img.squeeze(2)

    pil_img = Image.fromarray(np.ascontiguousarray(img))

    # Keep the real extension last so PIL can infer the format
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    try:
        pil_img.save(tmp_path, **pil_kwargs)
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to save image {path} atomically: {e}") from e


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file path

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content (``None`` for an empty file)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def sibling_path(
    orig: Union[str, Path],
    suffix: str,
    extension: Optional[str] = None
) -> Path:
    """Build ``<dir>/<stem><suffix><ext>`` next to *orig*.

    Parameters
    ----------
    orig : Union[str, Path]
        Input file path
    suffix : str
        Appended to the stem, e.g. "_level"
    extension : str, optional
        Replacement extension including the dot; None keeps the original

    Examples
    --------
    >>> sibling_path("/tmp/part.gcode", "_debug", ".png")
    PosixPath('/tmp/part_debug.png')
    """
    orig = Path(orig)
    ext = extension if extension is not None else orig.suffix
    return orig.with_name(f"{orig.stem}{suffix}{ext}")


def sniff_newline(path: Union[str, Path], default: str = "\n") -> str:
    """Return the line terminator used by the first line of *path*.

    Parameters
    ----------
    path : Union[str, Path]
        Text file to inspect
    default : str
        Returned when the file contains no line break

    Returns
    -------
    str
        "\\r\\n" or "\\n"
    """
    with open(path, 'rb') as f:
        head = f.read(64 * 1024)
    idx = head.find(b"\n")
    if idx < 0:
        return default
    return "\r\n" if idx > 0 and head[idx - 1:idx] == b"\r" else "\n"
