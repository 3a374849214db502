"""
Document I/O Module

Responsibility:
- Read a composite resource YAML into a CompositeSpec
- Read observed resources from a YAML file or a directory of YAML files
- Serialise a RenderOutput deterministically as YAML or JSON

No rendering happens here.  Directories are read in sorted file order so
the same directory always yields the same observed list.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from api.models import CompositeSpec, RenderOutput

YAML_SUFFIXES = (".yaml", ".yml")

PathLike = Union[str, Path]


def load_composite(path: PathLike) -> CompositeSpec:
    """Load the first document of a composite resource YAML file.

    Raises:
        FileNotFoundError: if *path* does not exist.
        ValueError: if the file holds no mapping document.
        pydantic.ValidationError: if the document does not fit the schema.
    """
    documents = _read_documents(Path(path))
    if not documents:
        raise ValueError(f"No composite document found in {path}")
    return CompositeSpec.from_composite(documents[0])


def load_observed(path: PathLike | None) -> List[Any]:
    """Load every observed resource under *path*.

    *path* may be a single YAML file (multi-document allowed) or a directory
    whose ``*.yaml``/``*.yml`` files are read in sorted order.  ``None``
    means "nothing observed yet".  Entries are returned unvalidated; the
    indexer decides what is usable.
    """
    if path is None:
        return []
    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(f"Observed resources path not found: {target}")

    if target.is_file():
        return _read_documents(target)

    observed: List[Any] = []
    for child in sorted(target.iterdir()):
        if child.is_file() and child.suffix in YAML_SUFFIXES:
            observed.extend(_read_documents(child))
    return observed


def dump_output(output: RenderOutput, fmt: str = "yaml") -> str:
    """Serialise the full ``{resources, status}`` document.

    Keys keep model order so two renders of the same input are byte-identical.
    """
    return _dump(output.to_document(), fmt)


def dump_status(output: RenderOutput, fmt: str = "yaml") -> str:
    """Serialise only the status summary."""
    return _dump({"status": output.to_document()["status"]}, fmt)


def dump_manifests(output: RenderOutput) -> str:
    """Emit the drafted manifests as a multi-document YAML stream."""
    manifests: List[Dict[str, Any]] = [draft["manifest"] for draft in output.to_document()["resources"]]
    return yaml.safe_dump_all(manifests, sort_keys=False, default_flow_style=False, allow_unicode=True)


def _read_documents(path: Path) -> List[Any]:
    """Return every non-empty YAML document in *path*."""
    with open(path, "r", encoding="utf-8") as fh:
        return [doc for doc in yaml.safe_load_all(fh) if doc is not None]


def _dump(document: Dict[str, Any], fmt: str) -> str:
    """Render *document* as indented JSON or block-style YAML."""
    if fmt == "json":
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, default_flow_style=False, allow_unicode=True)
    raise ValueError(f"Unsupported output format: {fmt}")
