"""
Hierarchy integrity checks for designations.

A designation carries two independent parent-like pointers:

    parent_id        org-chart parent
    reporting_to_id  reporting manager

Each pointer graph must stay acyclic on its own. Before a pointer is
written, HierarchyChecker walks the ancestor chain of the candidate and
refuses the assignment if the walk reaches the designation being updated.

Any doubt resolves to "circular": a missing node, a store error, a chain
that revisits itself or a chain longer than the hop cap all reject the
write. The walk re-reads the store on every call and follows pointers
through inactive rows, since soft-deleted designations stay in the graph.
"""
import logging

from django.conf import settings

from .exceptions import DesignationStoreError, LookupFailure

logger = logging.getLogger(__name__)

PARENT = 'parent'
REPORTING_TO = 'reporting_to'

RELATION_FIELDS = {
    PARENT: 'parent_id',
    REPORTING_TO: 'reporting_to_id',
}

DEFAULT_MAX_HOPS = 1000


def relation_field(relation):
    try:
        return RELATION_FIELDS[relation]
    except KeyError:
        raise ValueError(
            f"Unknown hierarchy relation {relation!r}. "
            f"Valid relations: {sorted(RELATION_FIELDS)}"
        )


def _same(left, right):
    return str(left) == str(right)


class HierarchyChecker:
    """Cycle detection over one store, for either pointer relation."""

    def __init__(self, store, max_hops=None):
        self.store = store
        self._max_hops = max_hops

    def hop_limit(self):
        """Upper bound on walk length: node count, capped by settings."""
        if self._max_hops is not None:
            return self._max_hops
        ceiling = getattr(settings, 'DESIGNATION_HIERARCHY_MAX_HOPS', DEFAULT_MAX_HOPS)
        return min(self.store.count() + 1, ceiling)

    def is_circular(self, designation_id, candidate_id, relation=PARENT):
        """
        Return True if making ``candidate_id`` the ``relation`` of
        ``designation_id`` would create a cycle.

        ``designation_id`` may be a sentinel for a node that does not exist
        yet; a null or empty ``candidate_id`` is always safe.
        """
        field = relation_field(relation)
        if not candidate_id:
            return False
        if _same(candidate_id, designation_id):
            return True

        try:
            return self._walk(designation_id, candidate_id, field)
        except (LookupFailure, DesignationStoreError) as exc:
            logger.warning(
                "Treating %s assignment %s -> %s as circular: %s",
                relation, designation_id, candidate_id, exc,
            )
            return True

    check_circular_reference = is_circular

    def ancestors(self, designation_id, relation=PARENT):
        """
        Ids above ``designation_id`` along one relation, nearest first.

        Raises LookupFailure when the chain is broken, loops or exceeds the
        hop cap; a partial chain is never returned.
        """
        field = relation_field(relation)
        node = self._fetch(designation_id)
        chain = []
        seen = {str(designation_id)}
        limit = self.hop_limit()
        current = getattr(node, field)
        while current:
            key = str(current)
            if key in seen:
                raise LookupFailure(current, "cycle in stored hierarchy")
            if len(chain) >= limit:
                raise LookupFailure(current, f"exceeded {limit} hops")
            seen.add(key)
            chain.append(current)
            current = getattr(self._fetch(current), field)
        return chain

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _walk(self, designation_id, candidate_id, field):
        limit = self.hop_limit()
        visited = set()
        current = candidate_id
        hops = 0
        while current:
            key = str(current)
            if key in visited:
                logger.warning("Existing cycle through designation %s on %s", key, field)
                return True
            if _same(current, designation_id):
                return True
            if hops >= limit:
                raise LookupFailure(current, f"exceeded {limit} hops")
            visited.add(key)
            current = getattr(self._fetch(current), field)
            hops += 1
        return False

    def _fetch(self, designation_id):
        node = self.store.get(designation_id)
        if node is None:
            raise LookupFailure(designation_id, "not found")
        return node
