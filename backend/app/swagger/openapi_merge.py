"""
Foundation API Backend — OpenAPI Document Merging
===================================================

What:  Folds a second OpenAPI document (the auth service's) into the one
       FastAPI generates, and installs the merged document on the app.
How:   merge_openapi_documents(target, source) mutates and returns target.
       Each section is merged only when the source has it:

           paths         union; same path → per-method override, params
                         deduped by $ref or name:in
           components    shallow merge per category, source wins
           tags          dedupe by name, source description wins if non-empty
           servers       dedupe by url, source wins
           security      concatenated (list of alternatives)
           externalDocs  replaced

       `openapi` and `info` always come from the target.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

HTTP_METHODS = frozenset({"get", "put", "post", "delete", "options", "head", "patch", "trace"})


# ── Section mergers ───────────────────────────────────────────────────────


def _parameter_key(parameter: Any) -> Optional[str]:
    if not isinstance(parameter, dict):
        return None
    if "$ref" in parameter:
        return f"$ref:{parameter['$ref']}"
    if "name" in parameter and "in" in parameter:
        return f"{parameter['name']}:{parameter['in']}"
    return None


def merge_parameters(target: Optional[List[Any]], source: Optional[List[Any]]) -> Optional[List[Any]]:
    """Union of two parameter lists; source entries replace same-key target entries."""
    if not source:
        return target
    if not target:
        return list(source)

    merged: Dict[str, Any] = {}
    unkeyed: List[Any] = []
    for parameter in list(target) + list(source):
        key = _parameter_key(parameter)
        if key is None:
            unkeyed.append(parameter)
        else:
            merged[key] = parameter
    return list(merged.values()) + unkeyed


def merge_path_item(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(target)
    for key, value in source.items():
        if key in HTTP_METHODS:
            merged[key] = value
        elif key == "parameters":
            merged["parameters"] = merge_parameters(target.get("parameters"), value)
        elif key == "servers":
            merged["servers"] = merge_servers(target.get("servers"), value)
        elif key in ("summary", "description", "$ref") or key.startswith("x-"):
            merged[key] = value
    return merged


def merge_paths(target: Optional[Document], source: Document) -> Document:
    merged = dict(target or {})
    for path, item in source.items():
        existing = merged.get(path)
        if isinstance(existing, dict) and isinstance(item, dict):
            merged[path] = merge_path_item(existing, item)
        else:
            merged[path] = item
    return merged


def merge_components(target: Optional[Document], source: Optional[Document]) -> Optional[Document]:
    if not source:
        return target
    if not target:
        return dict(source)

    merged = dict(target)
    for category, entries in source.items():
        if isinstance(entries, dict):
            merged[category] = {**(merged.get(category) or {}), **entries}
        else:
            merged[category] = entries
    return merged


def merge_tags(target: Optional[List[Any]], source: Optional[List[Any]]) -> Optional[List[Any]]:
    if not isinstance(source, list):
        return target
    if not isinstance(target, list):
        return list(source)

    tags: Dict[str, Dict[str, Any]] = {}
    for tag in target:
        if isinstance(tag, dict) and "name" in tag:
            tags[tag["name"]] = tag
    for tag in source:
        if not (isinstance(tag, dict) and "name" in tag):
            continue
        existing = tags.get(tag["name"])
        if existing is None:
            tags[tag["name"]] = tag
            continue
        combined = {**existing, **tag}
        description = tag.get("description") or existing.get("description")
        if description is not None:
            combined["description"] = description
        tags[tag["name"]] = combined
    return list(tags.values())


def merge_servers(target: Optional[List[Any]], source: Optional[List[Any]]) -> Optional[List[Any]]:
    if not isinstance(source, list):
        return target
    if not isinstance(target, list):
        return list(source)

    servers: Dict[str, Any] = {}
    for server in list(target) + list(source):
        if isinstance(server, dict) and "url" in server:
            servers[server["url"]] = server
    return list(servers.values())


def merge_security(target: Optional[List[Any]], source: Optional[List[Any]]) -> Optional[List[Any]]:
    if not isinstance(source, list):
        return target
    if not isinstance(target, list):
        return list(source)
    return list(target) + list(source)


def _set_or_drop(target: Document, key: str, value: Any) -> None:
    if value:
        target[key] = value
    else:
        target.pop(key, None)


def merge_openapi_documents(target: Document, source: Document) -> Document:
    """
    Merges `source` into `target` in place and returns `target`.

    Only sections the source actually has are touched, so merging never
    manufactures an empty `tags: []` or `components: {}`.
    """
    if source.get("paths"):
        target["paths"] = merge_paths(target.get("paths"), source["paths"])

    if "components" in source:
        _set_or_drop(target, "components", merge_components(target.get("components"), source["components"]))

    if "tags" in source:
        _set_or_drop(target, "tags", merge_tags(target.get("tags"), source["tags"]))

    if "servers" in source:
        _set_or_drop(target, "servers", merge_servers(target.get("servers"), source["servers"]))

    if "security" in source:
        _set_or_drop(target, "security", merge_security(target.get("security"), source["security"]))

    if source.get("externalDocs"):
        target["externalDocs"] = source["externalDocs"]

    return target


# ── Application wiring ────────────────────────────────────────────────────


def load_openapi_document(path: Optional[str]) -> Optional[Document]:
    """
    Reads an OpenAPI JSON document from disk.

    Returns None (and logs a warning) when the path is unset, missing, or
    not a JSON object, so a broken auth schema never breaks /openapi.json.
    """
    if not path:
        return None
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Could not load OpenAPI document %s: %s", path, e)
        return None
    if not isinstance(document, dict):
        logger.warning("OpenAPI document %s is not a JSON object; skipping", path)
        return None
    return document


def install_openapi(app: FastAPI, extra_documents: Iterable[Optional[Document]]) -> None:
    """
    Wraps `app.openapi` so the served document includes `extra_documents`.

    The merged document is cached on `app.openapi_schema` like FastAPI's own.
    """
    documents = [document for document in extra_documents if document]
    original_openapi: Callable[[], Document] = app.openapi

    def merged_openapi() -> Document:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()
        for document in documents:
            merge_openapi_documents(schema, document)
        app.openapi_schema = schema
        return schema

    app.openapi = merged_openapi  # type: ignore[method-assign]
