"""Workload resolution for report scopes.

The owning workload of a pod is taken from its owner references when one of
them is a workload kind. Otherwise it is inferred from the pod name, which for
Deployment-managed pods follows ``<workload-name>-<hash>-<random>``, e.g.
``cert-manager-cainjector-89fd4b8f9-t9xlf`` -> ``cert-manager-cainjector``.
Names that leave fewer than two tokens once the suffixes are removed, such as
``web-7d4b9c-abcde``, are not inferred.
"""

import json
import logging
from typing import List, Mapping

from logbatch.schemas import AnyValue

from .extraction import extract_string_array
from .schemas import OWNER_REFERENCES_KEY, WORKLOAD_KINDS, WorkloadInfo

logger = logging.getLogger(__name__)

DEFAULT_WORKLOAD_KIND = "Deployment"


def is_workload_kind(kind: str) -> bool:
    return kind in WORKLOAD_KINDS


def split_pod_name(pod_name: str) -> List[str]:
    """Split a pod name on hyphens, dropping empty tokens."""
    return [part for part in pod_name.split("-") if part]


def _resolve_from_owner_references(attributes: Mapping[str, AnyValue], info: WorkloadInfo) -> None:
    owner_refs = extract_string_array(attributes.get(OWNER_REFERENCES_KEY)) or []

    for raw_ref in owner_refs:
        try:
            owner_ref = json.loads(raw_ref)
        except (ValueError, RecursionError):
            logger.debug(f"Skipping unparseable owner reference: {raw_ref!r}")
            continue
        if not isinstance(owner_ref, dict):
            continue

        kind = owner_ref.get("kind")
        if not isinstance(kind, str) or not is_workload_kind(kind):
            continue

        info.kind = kind
        name = owner_ref.get("name")
        if isinstance(name, str):
            info.name = name
        uid = owner_ref.get("uid")
        if isinstance(uid, str):
            info.uid = uid
        # first workload owner wins
        break


def _infer_from_pod_name(pod_name: str, info: WorkloadInfo) -> None:
    parts = split_pod_name(pod_name)
    # drop hash and random suffix; at least two name tokens must remain
    name_parts = parts[:-2]
    if len(name_parts) < 2:
        return

    info.name = "-".join(name_parts)
    if not info.kind:
        info.kind = DEFAULT_WORKLOAD_KIND


def extract_workload_info(
    attributes: Mapping[str, AnyValue],
    pod_name: str,
    namespace: str,
) -> WorkloadInfo:
    """Resolve the workload owning a report's scope.

    Args:
        attributes: Attributes of the report record
        pod_name: Name of the scoped resource
        namespace: Namespace of the scoped resource

    Returns:
        WorkloadInfo; namespace is always the input namespace
    """
    info = WorkloadInfo(namespace=namespace)

    _resolve_from_owner_references(attributes, info)

    if not info.name and pod_name:
        _infer_from_pod_name(pod_name, info)

    return info
