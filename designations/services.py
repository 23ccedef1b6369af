import logging
import re
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db.models import Q

from .exceptions import CircularHierarchyError, DesignationNotFound
from .hierarchy import PARENT, REPORTING_TO, HierarchyChecker
from .store import DesignationStore

logger = logging.getLogger(__name__)

POINTER_FIELDS = {
    'parent_id': PARENT,
    'reporting_to_id': REPORTING_TO,
}

TEXT_FIELDS = ('name', 'code', 'description', 'department')
INTEGER_FIELDS = ('level', 'sort_order')
SALARY_FIELDS = ('min_salary', 'max_salary')
LIST_FIELDS = ('responsibilities', 'requirements')

CREATE_FIELDS = (
    TEXT_FIELDS + INTEGER_FIELDS + SALARY_FIELDS + LIST_FIELDS + tuple(POINTER_FIELDS)
)
UPDATE_FIELDS = CREATE_FIELDS + ('is_active',)

# Accept the relation names the API serializer uses as aliases
FIELD_ALIASES = {
    'parent': 'parent_id',
    'reporting_to': 'reporting_to_id',
}

DEFAULT_CODE_MAX_LENGTH = 20
DEFAULT_CURRENCY_SYMBOL = '৳'


def generate_code(name, max_length=None):
    """
    Derive a designation code from its name.

    "Area Sales Manager (North)" -> "AREA_SALES_MANAGER_N"
    """
    if max_length is None:
        max_length = getattr(settings, 'DESIGNATION_CODE_MAX_LENGTH', DEFAULT_CODE_MAX_LENGTH)
    code = (name or '').upper()
    code = re.sub(r'[^A-Z0-9\s]', '', code)
    code = re.sub(r'\s+', '_', code)
    return code[:max_length]


def _group_amount(amount):
    """Thousands separators in the South Asian style used by the dashboards (12,34,567)."""
    amount = Decimal(amount)
    sign = '-' if amount < 0 else ''
    amount = abs(amount)
    if amount == amount.to_integral_value():
        whole, fraction = str(int(amount)), ''
    else:
        whole, fraction = f"{amount:.2f}".split('.')
        fraction = '.' + fraction.rstrip('0')
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ','.join(groups + [tail])
    return f"{sign}{whole}{fraction}"


def format_salary_range(min_salary=None, max_salary=None):
    """Human readable salary band, e.g. '৳25,000 - ৳40,000'."""
    symbol = getattr(settings, 'DESIGNATION_CURRENCY_SYMBOL', DEFAULT_CURRENCY_SYMBOL)
    if not min_salary and not max_salary:
        return 'Not specified'
    if not min_salary:
        return f"Up to {symbol}{_group_amount(max_salary)}"
    if not max_salary:
        return f"From {symbol}{_group_amount(min_salary)}"
    return f"{symbol}{_group_amount(min_salary)} - {symbol}{_group_amount(max_salary)}"


TRUE_STRINGS = ('1', 'true', 'yes', 'on')
FALSE_STRINGS = ('0', 'false', 'no', 'off', '')


def _parse_bool(value):
    """Strict boolean; strings are read the way env flags are."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ValidationError("Must be a boolean.")


def summarize(designation):
    """Compact representation used for related designations and tree nodes."""
    if designation is None:
        return None
    return {
        'id': designation.id,
        'name': designation.name,
        'code': designation.code,
        'level': designation.level,
        'sort_order': designation.sort_order,
    }


class DesignationService:
    """
    Create/update/deactivate designations without breaking the hierarchy.

    Every write is a single row. Updates that touch parent_id or
    reporting_to_id are checked for cycles first and rejected as a whole
    with CircularHierarchyError; nothing is written in that case.
    """

    def __init__(self, store=None, checker=None):
        self.store = store or DesignationStore()
        self.checker = checker or HierarchyChecker(self.store)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, data, user=None):
        """Insert a new active designation"""
        fields = self._clean(data, CREATE_FIELDS)

        if not fields.get('name'):
            raise ValidationError({'name': "Name is required."})
        self._check_salary_band(fields.get('min_salary'), fields.get('max_salary'))

        for field in POINTER_FIELDS:
            target_id = fields.get(field)
            if target_id and self.store.get(target_id) is None:
                raise ValidationError({field: f"Designation {target_id} does not exist."})

        if fields.get('code'):
            if self.store.code_exists(fields['code']):
                raise ValidationError({'code': f"Designation code '{fields['code']}' already exists."})
        else:
            fields['code'] = self._unique_code(fields['name'])

        if fields.get('level') is None:
            fields['level'] = self._derive_level(fields.get('parent_id'))

        fields.pop('is_active', None)
        if user is not None:
            fields['created_by'] = user
            fields['updated_by'] = user

        designation = self.store.insert(is_active=True, **fields)
        logger.info(
            "Created designation %s (%s) parent=%s reporting_to=%s",
            designation.id, designation.code,
            designation.parent_id, designation.reporting_to_id,
        )
        return designation

    def update(self, designation_id, data, user=None):
        """Apply a patch after validating fields and both hierarchies"""
        current = self.store.get(designation_id)
        if current is None:
            raise DesignationNotFound(designation_id)

        patch = self._clean(data, UPDATE_FIELDS)
        if patch.get('level', 0) is None:
            patch.pop('level')

        if 'name' in patch and not patch['name']:
            raise ValidationError({'name': "Name cannot be empty."})
        if 'code' in patch:
            if not patch['code']:
                raise ValidationError({'code': "Code cannot be empty."})
            if self.store.code_exists(patch['code'], exclude_id=current.pk):
                raise ValidationError({'code': f"Designation code '{patch['code']}' already exists."})
        self._check_salary_band(
            patch.get('min_salary', current.min_salary),
            patch.get('max_salary', current.max_salary),
        )

        for field, relation in POINTER_FIELDS.items():
            if field not in patch:
                continue
            if self.checker.is_circular(current.pk, patch[field], relation):
                logger.warning(
                    "Circular reference detected in designation hierarchy: "
                    "%s %s -> %s rejected", relation, current.pk, patch[field],
                )
                raise CircularHierarchyError(relation, current.pk, patch[field])

        if user is not None:
            patch['updated_by'] = user

        designation = self.store.update(current.pk, **patch)
        logger.info("Updated designation %s fields=%s", designation.pk, sorted(patch))
        return designation

    def deactivate(self, designation_id, user=None):
        """Soft delete. Children and reports keep pointing at this row."""
        if self.store.get(designation_id) is None:
            raise DesignationNotFound(designation_id)
        patch = {'is_active': False}
        if user is not None:
            patch['updated_by'] = user
        designation = self.store.update(designation_id, **patch)
        logger.info("Deactivated designation %s", designation.pk)
        return designation

    def check_circular_reference(self, designation_id, candidate_id, relation=PARENT):
        return self.checker.is_circular(designation_id, candidate_id, relation)

    # ------------------------------------------------------------------
    # Queries (active rows only)
    # ------------------------------------------------------------------

    def get(self, designation_id):
        designation = self.store.get(designation_id)
        if designation is None:
            raise DesignationNotFound(designation_id)
        return designation

    def get_with_details(self, designation_id):
        """Designation plus its parent, reporting manager and active children"""
        designation = self.get(designation_id)
        return {
            'designation': designation,
            'parent': self.store.get(designation.parent_id),
            'reporting_to': self.store.get(designation.reporting_to_id),
            'children': self.list_children(designation.pk),
        }

    def list_all(self):
        return self.store.list()

    def list_by_department(self, department):
        return self.store.list(department=department)

    def list_by_level(self, level):
        return self.store.list(ordering=('sort_order',), level=level)

    def list_children(self, parent_id):
        return self.store.list(ordering=('sort_order',), parent_id=parent_id)

    def list_roots(self):
        return self.store.list(ordering=('sort_order',), parent__isnull=True)

    def search(self, query):
        query = (query or '').strip()
        if not query:
            return self.list_all()
        return self.store.list(
            Q(name__icontains=query) | Q(code__icontains=query) | Q(description__icontains=query)
        )

    def list_departments(self):
        departments = {
            d.department for d in self.store.list(ordering=('department',))
            if d.department
        }
        return sorted(departments)

    def get_hierarchy(self):
        """
        Nested org-chart tree of active designations.

        A designation whose parent is inactive or missing is shown as a root
        so that deactivating a node never hides its subtree.
        """
        nodes = {}
        for designation in self.list_all():
            node = summarize(designation)
            node.update({
                'department': designation.department,
                'parent_id': designation.parent_id,
                'reporting_to_id': designation.reporting_to_id,
                'children': [],
            })
            nodes[designation.pk] = node

        roots = []
        for node in nodes.values():
            parent = nodes.get(node['parent_id'])
            if parent is not None:
                parent['children'].append(node)
            else:
                roots.append(node)
        return roots

    def stats(self):
        return {
            'total': self.store.count(),
            'active': self.store.count(include_inactive=False),
            'departments': len(self.list_departments()),
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _clean(self, data, allowed):
        """Normalise raw input into model field values"""
        cleaned = {}
        errors = {}
        for key, value in dict(data or {}).items():
            key = FIELD_ALIASES.get(key, key)
            if key not in allowed:
                continue
            try:
                cleaned[key] = self._clean_value(key, value)
            except ValidationError as exc:
                errors[key] = exc.messages
        if errors:
            raise ValidationError(errors)
        return cleaned

    def _clean_value(self, key, value):
        if key in POINTER_FIELDS:
            # Empty string means "no relation", never a literal empty key
            if value in ('', None):
                return None
            return getattr(value, 'pk', value)
        if key in TEXT_FIELDS:
            if value is None:
                return None if key == 'department' else ''
            value = str(value).strip()
            if key == 'department':
                return value or None
            return value
        if key in INTEGER_FIELDS:
            if value in ('', None):
                return None if key == 'level' else 0
            try:
                number = int(value)
            except (TypeError, ValueError):
                raise ValidationError("Must be an integer.")
            if key == 'level' and number < 0:
                raise ValidationError("Level cannot be negative.")
            return number
        if key in SALARY_FIELDS:
            if value in ('', None):
                return None
            try:
                amount = Decimal(str(value))
            except (InvalidOperation, ValueError):
                raise ValidationError("Must be a number.")
            if not amount.is_finite() or amount < 0:
                raise ValidationError("Salary cannot be negative.")
            return amount
        if key in LIST_FIELDS:
            if value is None:
                return []
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise ValidationError("Must be a list of strings.")
            return [str(item).strip() for item in value if str(item).strip()]
        if key == 'is_active':
            return _parse_bool(value)
        return value

    def _check_salary_band(self, min_salary, max_salary):
        if min_salary is not None and max_salary is not None and min_salary > max_salary:
            raise ValidationError(
                {'max_salary': "Maximum salary cannot be less than minimum salary."}
            )

    def _derive_level(self, parent_id):
        if not parent_id:
            return 0
        parent = self.store.get(parent_id)
        return parent.level + 1 if parent else 0

    def _unique_code(self, name):
        max_length = getattr(settings, 'DESIGNATION_CODE_MAX_LENGTH', DEFAULT_CODE_MAX_LENGTH)
        base = generate_code(name, max_length)
        if not base:
            raise ValidationError({'code': "Code could not be derived from the name."})
        code = base
        suffix = 2
        while self.store.code_exists(code):
            tail = f"_{suffix}"
            code = base[:max_length - len(tail)] + tail
            suffix += 1
        return code
