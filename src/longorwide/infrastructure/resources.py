"""
Internal resource management infrastructure.

Datasets, analysis results and code snippets produced by the dataset-level tools
are written next to a project manifest (a JSON file) that records what was
created, when, by which function and from which inputs. The manifest is the
source of truth: a resource can only be loaded if it is tracked there.
"""

import json
import secrets
import inspect
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from longorwide.infrastructure.supported_resource_types import TYPE_REGISTRY
from longorwide.config import DATA_ROOT


def get_supported_resource_types() -> list[str]:
    """Return a list of supported resource types."""
    return list(TYPE_REGISTRY.keys())


def _get_timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")


def _summarise_argument(value: Any) -> Any:
    """Make a function argument JSON-friendly for the manifest."""
    if isinstance(value, (str, int, float, bool, type(None))):
        return value
    if isinstance(value, (list, tuple)):
        if len(value) <= 10 and all(isinstance(v, (str, int, float, bool)) for v in value):
            return list(value)
        return f"<{type(value).__name__} of length {len(value)}>"
    if isinstance(value, dict):
        return f"<dict with {len(value)} keys>"
    if hasattr(value, "shape"):
        return f"<{type(value).__name__} shape={value.shape}>"
    text = repr(value)
    return text if len(text) < 100 else f"<{type(value).__name__}>"


def _get_parent_info() -> dict:
    """Describe the tool function that asked for a resource to be stored.

    Walks up the call stack past this module and returns the first frame's
    function name, its arguments, and its module. Introspection problems never
    prevent a resource from being stored; they produce 'unknown' values instead.
    """
    unknown = {'function_name': 'unknown', 'function_inputs': {}, 'module': 'unknown'}
    try:
        parent_frame = None
        for frame_info in inspect.stack()[2:]:
            if frame_info.filename != __file__:
                parent_frame = frame_info
                break
        if parent_frame is None:
            return unknown

        frame = parent_frame.frame
        arginfo = inspect.getargvalues(frame)
        function_inputs = {
            name: _summarise_argument(arginfo.locals.get(name))
            for name in arginfo.args
        }
        module = inspect.getmodule(frame)

        return {
            'function_name': parent_frame.function,
            'function_inputs': function_inputs,
            'module': module.__name__ if module else 'unknown',
        }
    except Exception as e:
        return {**unknown, 'error': str(e)}


def _generate_id(type_tag: str) -> str:
    """Generate unique resource ID suffix: _{8_hex_chars}{extension}."""
    rand = secrets.token_hex(4).upper()
    return f"_{rand}{TYPE_REGISTRY[type_tag]['ext']}"


def _store_resource(obj: Any, project_manifest_path: str, filename: str, explanation: str, type_tag: str) -> str:
    """Internal: Store object next to the manifest and track it.

    The stored file is named {filename}_{8_hex_chars}{ext}, so storing under the
    same base name twice never overwrites an earlier resource.

    Args:
        obj: Object to store (DataFrame for csv, dict/list for json, str for txt)
        project_manifest_path: Full path to the project manifest file
        filename: Base filename without extension (e.g., "scores_long")
        explanation: Brief description of what this resource contains
        type_tag: Resource type from TYPE_REGISTRY

    Returns:
        The stored filename (e.g., "scores_long_A3F2B1D4.csv"), which is the
        handle later passed to _load_resource.
    """
    if type_tag not in TYPE_REGISTRY:
        raise ValueError(f"Unsupported resource type: {type_tag}. Supported: {get_supported_resource_types()}")

    _check_if_manifest_exists(project_manifest_path)

    output_filename = f"{filename}{_generate_id(type_tag)}"
    path = Path(project_manifest_path).parent / output_filename

    save_fn: Callable[[Any, Path], None] = TYPE_REGISTRY[type_tag]['save']
    save_fn(obj, path)

    parent_info = _get_parent_info()
    add_to_project_manifest(
        project_manifest_path=project_manifest_path,
        filename=output_filename,
        type_tag=type_tag,
        explanation=explanation,
        timestamp=_get_timestamp(),
        parent_function_name=parent_info['function_name'],
        parent_function_inputs=parent_info['function_inputs'],
        module_name=parent_info['module'],
    )

    return output_filename


def _load_resource(project_manifest_path: str, filename: str) -> Any:
    """Internal: Load a tracked resource, using the manifest to find its type."""
    manifest = read_project_manifest(project_manifest_path)
    resources = manifest.get("resources", [])

    resource_entry = next((res for res in resources if res["filename"] == filename), None)
    if resource_entry is None:
        raise ValueError(
            f"Resource '{filename}' not found in manifest at {project_manifest_path}. "
            f"Available resources: {[r['filename'] for r in resources]}"
        )

    type_tag = resource_entry["type_tag"]
    if type_tag not in TYPE_REGISTRY:
        raise ValueError(f"Unknown resource type '{type_tag}' in manifest for resource '{filename}'")

    path = Path(project_manifest_path).parent / resource_entry["filename"]
    if not path.exists():
        raise FileNotFoundError(f"Resource file '{filename}' not found at expected location: {path}")

    load_fn: Callable[[Path], Any] = TYPE_REGISTRY[type_tag]["load"]
    return load_fn(path)


def create_project_manifest(path: str, project_name: str) -> dict:
    """Create a new project manifest to track datasets and results in a directory.

    Creates <path>/<project_name>_manifest.json. Create a manifest BEFORE running any
    tool that stores a dataset; ask the user for a project directory and name.

    Args:
        path: Directory where the manifest and data files will be stored (created if needed)
        project_name: Name for this project (used in the manifest filename)

    Returns:
        dict with project_name, created_at timestamp, and an empty resources list

    Raises:
        FileExistsError: If a manifest with this name already exists in the directory
    """
    project_manifest_path = Path(path) / f"{project_name}_manifest.json"

    if project_manifest_path.exists():
        raise FileExistsError(f"Project manifest already exists at {project_manifest_path}")

    Path(path).mkdir(parents=True, exist_ok=True)

    manifest = {
        "project_name": project_name,
        "created_at": _get_timestamp(),
        "resources": []
    }
    _write_manifest(project_manifest_path, manifest)
    return manifest


def read_project_manifest(project_manifest_path: str) -> dict:
    """Read the project manifest with all tracked resources.

    Args:
        project_manifest_path: Full path to the manifest file

    Returns:
        dict with project_name, created_at and the list of resources

    Raises:
        FileNotFoundError: If no manifest exists at this path
    """
    _check_if_manifest_exists(project_manifest_path)
    with open(project_manifest_path, "r") as f:
        return json.load(f)


def _write_manifest(project_manifest_path, manifest: dict) -> None:
    with open(project_manifest_path, "w") as f:
        json.dump(manifest, f, indent=4)


def _check_if_manifest_exists(project_manifest_path: str) -> bool:
    """Internal: Check manifest exists, raise helpful error if not."""
    if Path(project_manifest_path).exists():
        return True
    raise FileNotFoundError(
        f"Project manifest not found at {project_manifest_path}. "
        f"Supply the correct path or create one with create_project_manifest. "
        f"The default data directory is {DATA_ROOT}"
    )


def add_to_project_manifest(project_manifest_path: str, filename: str, type_tag: str, explanation: str | None = 'unknown',
                            timestamp: str | None = None, parent_function_name: str | None = 'unknown',
                            parent_function_inputs: dict | str | None = 'unknown', module_name: str | None = 'unknown') -> None:
    """Add a resource entry to the project manifest.

    Records a file placed in the project directory so it can be loaded by the
    dataset tools. Entries written by the tools themselves are added automatically;
    call this for files copied into the project directory by hand.

    Args:
        project_manifest_path: Full path to the manifest file
        filename: Name of the file in the project directory
        type_tag: Resource type (see get_supported_resource_types)
        explanation: Brief 1-sentence description of the resource
        timestamp: Optional timestamp (generated if None)
        parent_function_name: Function that created the resource
        parent_function_inputs: Inputs of that function
        module_name: Module of that function
    """
    manifest = read_project_manifest(project_manifest_path)

    manifest["resources"].append({
        "filename": filename,
        "type_tag": type_tag,
        "explanation": explanation,
        "timestamp": timestamp or _get_timestamp(),
        "parent_function_name": parent_function_name,
        "parent_function_inputs": parent_function_inputs,
        "module_name": module_name
    })

    _write_manifest(project_manifest_path, manifest)


def remove_from_project_manifest(project_manifest_path: str, resource_name: str, delete_file: bool = False) -> dict | None:
    """Stop tracking a resource in the project manifest, optionally deleting the file.

    Args:
        project_manifest_path: Full path to the manifest file
        resource_name: Filename of the resource to untrack
        delete_file: If True, also delete the file from disk (default: False)

    Returns:
        The removed manifest entry, or None if no entry had this filename
    """
    manifest = read_project_manifest(project_manifest_path)

    removed_resource = None
    kept = []
    for res in manifest.get("resources", []):
        if removed_resource is None and res["filename"] == resource_name:
            removed_resource = res
        else:
            kept.append(res)

    if removed_resource is not None and delete_file:
        file_path = Path(project_manifest_path).parent / resource_name
        if file_path.exists():
            file_path.unlink()

    manifest["resources"] = kept
    _write_manifest(project_manifest_path, manifest)
    return removed_resource


def list_untracked_resources_in_project(project_manifest_path: str) -> list[str]:
    """List files in the project directory that are not tracked in the manifest.

    Args:
        project_manifest_path: Full path to the manifest file

    Returns:
        Sorted list of filenames present on disk but absent from the manifest
        (the manifest file itself excluded)
    """
    manifest = read_project_manifest(project_manifest_path)
    manifest_file = Path(project_manifest_path)
    all_files = {f.name for f in manifest_file.parent.iterdir() if f.is_file()}
    tracked_files = {res["filename"] for res in manifest.get("resources", [])}
    return sorted(all_files - tracked_files - {manifest_file.name})


def get_all_resources_tools() -> list[Callable]:
    """Return list of all resource management tools for MCP server."""
    return [
        create_project_manifest,
        read_project_manifest,
        add_to_project_manifest,
        remove_from_project_manifest,
        list_untracked_resources_in_project,
        get_supported_resource_types
    ]
