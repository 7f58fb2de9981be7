#!/usr/bin/env python3
"""
Owner references from dependent resources to the driver pod.

When the driver pod is deleted the control plane garbage-collects every
resource that lists it as its controller owner.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import copy
from typing import Iterable, List

from .base import Manifest, OwnerLink, ResourceIdentity


def link(owner: ResourceIdentity, dependents: Iterable[Manifest]) -> List[Manifest]:
    """
    Return copies of ``dependents`` owned by ``owner``.

    Any existing owner references are replaced by a single controller
    reference. ``owner`` must come from the created resource so that its uid
    is known.
    """
    reference = OwnerLink.from_identity(owner).to_manifest()
    linked = []
    for dependent in dependents:
        resource = copy.deepcopy(dependent)
        resource.setdefault("metadata", {})["ownerReferences"] = [dict(reference)]
        linked.append(resource)
    return linked
