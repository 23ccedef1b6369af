import uuid
from decimal import Decimal
from unittest import mock

from django.contrib.admin.models import LogEntry
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from .exceptions import CircularHierarchyError, DesignationStoreError, LookupFailure
from .hierarchy import PARENT, REPORTING_TO, HierarchyChecker
from .models import Designation
from .services import DesignationService, format_salary_range, generate_code
from .store import DesignationStore


class FakeNode:
    def __init__(self, pk, parent_id=None, reporting_to_id=None):
        self.pk = pk
        self.parent_id = parent_id
        self.reporting_to_id = reporting_to_id


class FakeStore:
    """In-memory store used to reach states the database would refuse"""

    def __init__(self, *nodes, fail=False):
        self.nodes = {node.pk: node for node in nodes}
        self.fail = fail
        self.reads = 0

    def get(self, designation_id):
        self.reads += 1
        if self.fail:
            raise DesignationStoreError("connection lost")
        return self.nodes.get(designation_id)

    def count(self, include_inactive=True):
        return len(self.nodes)


class DesignationModelTest(TestCase):
    """Test cases for Designation model"""

    def setUp(self):
        """Set up test data"""
        self.designation = Designation.objects.create(
            name="Managing Director",
            code="MD",
        )

    def test_designation_creation(self):
        """Test designation defaults"""
        self.assertEqual(self.designation.level, 0)
        self.assertTrue(self.designation.is_active)
        self.assertTrue(self.designation.is_root)
        self.assertEqual(self.designation.responsibilities, [])

    def test_designation_str(self):
        """Test designation string representation"""
        self.assertEqual(str(self.designation), "Managing Director (MD)")

    def test_clean_rejects_inverted_salary_band(self):
        """Test model validation of min/max salary"""
        self.designation.min_salary = Decimal('50000')
        self.designation.max_salary = Decimal('10000')
        with self.assertRaises(ValidationError):
            self.designation.full_clean()

    def test_active_manager(self):
        """Test active manager hides soft deleted rows"""
        Designation.objects.create(name="Old Title", code="OLD", is_active=False)
        self.assertEqual(Designation.active.count(), 1)
        self.assertEqual(Designation.objects.count(), 2)


class HelperFunctionTest(TestCase):
    """Test cases for code generation and salary formatting"""

    def test_generate_code(self):
        self.assertEqual(generate_code("Area Sales Manager (North)"), "AREA_SALES_MANAGER_N")
        self.assertEqual(generate_code("  HR   Officer "), "_HR_OFFICER_")
        self.assertEqual(generate_code("Medical Promotion Officer", max_length=5), "MEDIC")

    def test_format_salary_range(self):
        self.assertEqual(format_salary_range(None, None), 'Not specified')
        self.assertEqual(format_salary_range(None, 50000), 'Up to ৳50,000')
        self.assertEqual(format_salary_range(Decimal('25000.00'), None), 'From ৳25,000')
        self.assertEqual(format_salary_range(25000, 40000), '৳25,000 - ৳40,000')
        self.assertEqual(format_salary_range(1234567, None), 'From ৳12,34,567')

    @override_settings(DESIGNATION_CURRENCY_SYMBOL='Rs ')
    def test_format_salary_range_currency_setting(self):
        self.assertEqual(format_salary_range(1000, 2000), 'Rs 1,000 - Rs 2,000')


class DesignationServiceTest(TestCase):
    """Test cases for DesignationService commands"""

    def setUp(self):
        self.service = DesignationService()
        self.md = self.service.create({'name': 'Managing Director'})
        self.gm = self.service.create({'name': 'General Manager', 'parent_id': self.md.pk})

    def test_create_generates_code_and_level(self):
        """Test code and level are derived when omitted"""
        self.assertEqual(self.md.code, 'MANAGING_DIRECTOR')
        self.assertEqual(self.md.level, 0)
        self.assertEqual(self.gm.level, 1)
        self.assertEqual(self.gm.parent_id, self.md.pk)

    def test_create_suffixes_colliding_code(self):
        """Test generated code gets a numeric suffix on collision"""
        second = self.service.create({'name': 'Managing Director'})
        third = self.service.create({'name': 'Managing Director'})
        self.assertEqual(second.code, 'MANAGING_DIRECTOR_2')
        self.assertEqual(third.code, 'MANAGING_DIRECTOR_3')

    def test_create_rejects_duplicate_explicit_code(self):
        with self.assertRaises(ValidationError):
            self.service.create({'name': 'Another', 'code': 'MANAGING_DIRECTOR'})

    def test_create_requires_name(self):
        with self.assertRaises(ValidationError):
            self.service.create({'name': '   '})

    def test_create_rejects_unknown_parent(self):
        with self.assertRaises(ValidationError):
            self.service.create({'name': 'Orphan', 'parent_id': str(uuid.uuid4())})

    def test_create_rejects_inverted_salary_band(self):
        with self.assertRaises(ValidationError):
            self.service.create({'name': 'Clerk', 'min_salary': 5000, 'max_salary': 1000})

    def test_create_cleans_lists(self):
        """Test blank list entries are dropped and others trimmed"""
        designation = self.service.create({
            'name': 'Accountant',
            'responsibilities': ['  Ledger ', '', '   ', 'Payroll'],
        })
        self.assertEqual(designation.responsibilities, ['Ledger', 'Payroll'])
        self.assertEqual(designation.requirements, [])

    def test_create_records_user(self):
        user = get_user_model().objects.create_user(username='hr', password='pass1234')
        designation = self.service.create({'name': 'HR Officer'}, user=user)
        self.assertEqual(designation.created_by, user)
        self.assertEqual(designation.updated_by, user)

    def test_self_parenting_rejected(self):
        """Test a designation cannot be its own parent"""
        with self.assertRaises(CircularHierarchyError):
            self.service.update(self.md.pk, {'parent_id': self.md.pk})
        with self.assertRaises(CircularHierarchyError):
            self.service.update(self.md.pk, {'reporting_to_id': str(self.md.pk)})

    def test_direct_cycle_rejected(self):
        """Test A.parent = B when B.parent = A"""
        with self.assertRaises(CircularHierarchyError) as ctx:
            self.service.update(self.md.pk, {'parent_id': self.gm.pk})
        self.assertEqual(ctx.exception.relation, PARENT)

    def test_transitive_cycle_rejected(self):
        """Test a longer chain closing back on itself"""
        nsm = self.service.create({'name': 'National Sales Manager', 'parent_id': self.gm.pk})
        rsm = self.service.create({'name': 'Regional Sales Manager', 'parent_id': nsm.pk})
        with self.assertRaises(CircularHierarchyError):
            self.service.update(self.md.pk, {'parent_id': rsm.pk})

    def test_rejection_leaves_record_unchanged(self):
        """Test a rejected update writes nothing, including other fields in the patch"""
        user = get_user_model().objects.create_user(username='editor', password='pass1234')
        before = Designation.objects.filter(pk=self.md.pk).values().get()
        for _ in range(2):
            with self.assertRaises(CircularHierarchyError):
                self.service.update(
                    self.md.pk, {'name': 'Renamed', 'parent_id': self.gm.pk}, user=user
                )
        after = Designation.objects.filter(pk=self.md.pk).values().get()
        self.assertEqual(after, before)
        self.assertIsNone(after['parent_id'])
        self.assertIsNone(after['updated_by_id'])

    def test_clearing_pointer_is_allowed(self):
        """Test null and empty pointers are always safe"""
        updated = self.service.update(self.gm.pk, {'parent_id': None})
        self.assertIsNone(updated.parent_id)
        updated = self.service.update(self.gm.pk, {'reporting_to_id': ''})
        self.assertIsNone(updated.reporting_to_id)

    def test_relations_are_checked_independently(self):
        """Test reporting_to may point against the org-chart direction"""
        updated = self.service.update(self.md.pk, {'reporting_to_id': self.gm.pk})
        self.assertEqual(updated.reporting_to_id, self.gm.pk)
        with self.assertRaises(CircularHierarchyError) as ctx:
            self.service.update(self.gm.pk, {'reporting_to_id': self.md.pk})
        self.assertEqual(ctx.exception.relation, REPORTING_TO)

    def test_valid_reparent(self):
        """Test moving a node under a sibling branch"""
        hr = self.service.create({'name': 'HR Manager', 'parent_id': self.md.pk})
        updated = self.service.update(hr.pk, {'parent': self.gm.pk})
        self.assertEqual(updated.parent_id, self.gm.pk)
        # level is stored, not recomputed
        self.assertEqual(updated.level, 1)

    def test_accepted_parent_blocks_reverse_assignment(self):
        """Test two roots: after E goes under D, D can no longer go under E"""
        d = self.service.create({'name': 'Depot Manager'})
        e = self.service.create({'name': 'Export Manager'})
        self.assertFalse(self.service.check_circular_reference(d.pk, e.pk))

        updated = self.service.update(e.pk, {'parent_id': d.pk})
        self.assertEqual(updated.parent_id, d.pk)
        self.assertTrue(self.service.check_circular_reference(d.pk, e.pk))
        with self.assertRaises(CircularHierarchyError):
            self.service.update(d.pk, {'parent_id': e.pk})

    def test_is_active_parsing(self):
        """Test string flags are parsed instead of truth-tested"""
        self.service.update(self.gm.pk, {'is_active': 'false'})
        self.gm.refresh_from_db()
        self.assertFalse(self.gm.is_active)
        self.service.update(self.gm.pk, {'is_active': '0'})
        self.gm.refresh_from_db()
        self.assertFalse(self.gm.is_active)
        self.service.update(self.gm.pk, {'is_active': 'true'})
        self.gm.refresh_from_db()
        self.assertTrue(self.gm.is_active)
        with self.assertRaises(ValidationError):
            self.service.update(self.gm.pk, {'is_active': 'maybe'})

    def test_update_to_missing_pointer_fails_closed(self):
        with self.assertRaises(CircularHierarchyError):
            self.service.update(self.gm.pk, {'parent_id': str(uuid.uuid4())})

    def test_update_duplicate_code_rejected(self):
        with self.assertRaises(ValidationError):
            self.service.update(self.gm.pk, {'code': self.md.code})

    def test_update_salary_against_current_values(self):
        self.service.update(self.gm.pk, {'min_salary': 100000})
        with self.assertRaises(ValidationError):
            self.service.update(self.gm.pk, {'max_salary': 50000})

    def test_deactivate_keeps_children(self):
        """Test soft delete leaves children pointing at the inactive row"""
        self.service.deactivate(self.md.pk)
        self.md.refresh_from_db()
        self.gm.refresh_from_db()
        self.assertFalse(self.md.is_active)
        self.assertEqual(self.gm.parent_id, self.md.pk)
        self.assertNotIn(self.md, self.service.list_all())

        tree = self.service.get_hierarchy()
        self.assertEqual([node['id'] for node in tree], [self.gm.pk])

    def test_inactive_rows_stay_in_cycle_checks(self):
        """Test the walk follows pointers through soft deleted rows"""
        self.service.deactivate(self.gm.pk)
        with self.assertRaises(CircularHierarchyError):
            self.service.update(self.md.pk, {'parent_id': self.gm.pk})


class DesignationQueryTest(TestCase):
    """Test cases for DesignationService queries"""

    def setUp(self):
        self.service = DesignationService()
        self.md = self.service.create({'name': 'Managing Director', 'department': 'Management'})
        self.nsm = self.service.create({
            'name': 'National Sales Manager', 'department': 'Sales',
            'parent_id': self.md.pk, 'sort_order': 2,
        })
        self.hr = self.service.create({
            'name': 'HR Manager', 'department': 'Human Resources',
            'parent_id': self.md.pk, 'sort_order': 1, 'description': 'People operations',
        })

    def test_list_roots_and_children(self):
        self.assertEqual(self.service.list_roots(), [self.md])
        self.assertEqual(self.service.list_children(self.md.pk), [self.hr, self.nsm])

    def test_list_by_level_and_department(self):
        self.assertEqual(self.service.list_by_level(1), [self.hr, self.nsm])
        self.assertEqual(self.service.list_by_department('Sales'), [self.nsm])

    def test_list_departments(self):
        self.assertEqual(
            self.service.list_departments(),
            ['Human Resources', 'Management', 'Sales'],
        )

    def test_search(self):
        self.assertEqual(self.service.search('people'), [self.hr])
        self.assertEqual(self.service.search('NATIONAL'), [self.nsm])
        self.assertEqual(len(self.service.search('  ')), 3)

    def test_get_with_details(self):
        details = self.service.get_with_details(self.md.pk)
        self.assertEqual(details['designation'], self.md)
        self.assertIsNone(details['parent'])
        self.assertEqual(details['children'], [self.hr, self.nsm])

    def test_get_hierarchy(self):
        tree = self.service.get_hierarchy()
        self.assertEqual(len(tree), 1)
        self.assertEqual(tree[0]['code'], 'MANAGING_DIRECTOR')
        self.assertEqual(
            [child['id'] for child in tree[0]['children']],
            [self.hr.pk, self.nsm.pk],
        )

    def test_stats(self):
        self.service.deactivate(self.hr.pk)
        self.assertEqual(self.service.stats(), {'total': 3, 'active': 2, 'departments': 2})


class HierarchyCheckerTest(TestCase):
    """Test cases for cycle detection against stores the database cannot produce"""

    def test_dangling_pointer_is_circular(self):
        store = FakeStore(FakeNode('b', parent_id='gone'))
        checker = HierarchyChecker(store)
        self.assertTrue(checker.is_circular('a', 'b'))

    def test_store_error_is_circular(self):
        checker = HierarchyChecker(FakeStore(FakeNode('b'), fail=True))
        self.assertTrue(checker.is_circular('a', 'b', REPORTING_TO))

    def test_existing_loop_is_circular(self):
        store = FakeStore(FakeNode('b', parent_id='c'), FakeNode('c', parent_id='b'))
        self.assertTrue(HierarchyChecker(store).is_circular('a', 'b'))

    def test_hop_cap_is_circular(self):
        store = FakeStore(
            FakeNode('b', parent_id='c'),
            FakeNode('c', parent_id='d'),
            FakeNode('d'),
        )
        self.assertFalse(HierarchyChecker(store).is_circular('a', 'b'))
        self.assertTrue(HierarchyChecker(store, max_hops=2).is_circular('a', 'b'))

    @override_settings(DESIGNATION_HIERARCHY_MAX_HOPS=1)
    def test_hop_cap_setting(self):
        store = FakeStore(FakeNode('b', parent_id='c'), FakeNode('c'))
        self.assertTrue(HierarchyChecker(store).is_circular('a', 'b'))

    def test_null_candidate_skips_store(self):
        store = FakeStore()
        checker = HierarchyChecker(store)
        self.assertFalse(checker.is_circular('a', None))
        self.assertFalse(checker.is_circular('a', ''))
        self.assertEqual(store.reads, 0)

    def test_new_node_sentinel(self):
        store = FakeStore(FakeNode('b'))
        self.assertFalse(HierarchyChecker(store).is_circular('__new__', 'b'))

    def test_unknown_relation(self):
        with self.assertRaises(ValueError):
            HierarchyChecker(FakeStore()).is_circular('a', 'b', 'manager')

    def test_ancestors(self):
        store = FakeStore(
            FakeNode('a', parent_id='b', reporting_to_id='c'),
            FakeNode('b', parent_id='c'),
            FakeNode('c'),
        )
        checker = HierarchyChecker(store)
        self.assertEqual(checker.ancestors('a'), ['b', 'c'])
        self.assertEqual(checker.ancestors('a', REPORTING_TO), ['c'])
        self.assertEqual(checker.ancestors('c'), [])

    def test_ancestors_broken_chain(self):
        store = FakeStore(FakeNode('a', parent_id='gone'))
        with self.assertRaises(LookupFailure):
            HierarchyChecker(store).ancestors('a')


class DesignationAPITest(TestCase):
    """Test cases for the designation endpoints"""

    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(username='admin', password='pass1234', is_staff=True)
        self.employee = User.objects.create_user(username='mpo', password='pass1234')
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

        self.service = DesignationService()
        self.md = self.service.create({'name': 'Managing Director', 'department': 'Management'})
        self.gm = self.service.create({'name': 'General Manager', 'parent_id': self.md.pk})

    def detail_url(self, designation):
        return reverse('designation-detail', args=[designation.pk])

    def test_requires_authentication(self):
        response = APIClient().get(reverse('designation-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list(self):
        response = self.client.get(reverse('designation-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        codes = [item['code'] for item in response.data['results']]
        self.assertEqual(codes, ['MANAGING_DIRECTOR', 'GENERAL_MANAGER'])

    def test_list_include_inactive_for_staff_only(self):
        self.service.deactivate(self.gm.pk)
        url = reverse('designation-list') + '?include_inactive=true'
        response = self.client.get(url)
        self.assertEqual(response.data['count'], 2)

        self.client.force_authenticate(user=self.employee)
        response = self.client.get(url)
        self.assertEqual(response.data['count'], 1)

    def test_create(self):
        response = self.client.post(
            reverse('designation-list'),
            {'name': 'National Sales Manager', 'parent_id': str(self.gm.pk), 'min_salary': '120000'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'NATIONAL_SALES_MANAGER')
        self.assertEqual(response.data['level'], 2)
        self.assertEqual(response.data['parent_id'], str(self.gm.pk))
        self.assertEqual(response.data['salary_range'], 'From ৳1,20,000')
        self.assertEqual(response.data['created_by_name'], 'admin')

    def test_create_forbidden_for_non_staff(self):
        self.client.force_authenticate(user=self.employee)
        response = self.client.post(reverse('designation-list'), {'name': 'Clerk'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_validation_error(self):
        response = self.client.post(
            reverse('designation-list'),
            {'name': 'Clerk', 'code': 'MANAGING_DIRECTOR'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('code', response.data)

    def test_retrieve_with_details(self):
        response = self.client.get(self.detail_url(self.md))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['parent'])
        self.assertEqual([c['code'] for c in response.data['children']], ['GENERAL_MANAGER'])

    def test_retrieve_missing(self):
        response = self.client.get(reverse('designation-detail', args=[uuid.uuid4()]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_partial_update(self):
        response = self.client.patch(self.detail_url(self.gm), {'sort_order': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sort_order'], 5)

    def test_circular_update_conflict(self):
        response = self.client.patch(
            self.detail_url(self.md), {'parent_id': str(self.gm.pk)}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'circular_hierarchy')
        self.assertEqual(response.data['relation'], PARENT)
        self.md.refresh_from_db()
        self.assertIsNone(self.md.parent_id)

    def test_destroy_soft_deletes(self):
        response = self.client.delete(self.detail_url(self.gm))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.gm.refresh_from_db()
        self.assertFalse(self.gm.is_active)

    def test_check_circular(self):
        url = reverse('designation-check-circular', args=[self.md.pk])
        response = self.client.post(url, {'candidate_id': str(self.gm.pk)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_circular'])

        response = self.client.post(
            url, {'candidate_id': str(self.gm.pk), 'relation': 'reporting_to'}, format='json'
        )
        self.assertFalse(response.data['is_circular'])

    def test_ancestors(self):
        response = self.client.get(reverse('designation-ancestors', args=[self.gm.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['ancestors'], [str(self.md.pk)])

        response = self.client.get(
            reverse('designation-ancestors', args=[self.gm.pk]) + '?relation=boss'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_collection_actions(self):
        response = self.client.get(reverse('designation-roots'))
        self.assertEqual([d['code'] for d in response.data], ['MANAGING_DIRECTOR'])

        response = self.client.get(reverse('designation-hierarchy'))
        self.assertEqual(len(response.data[0]['children']), 1)

        response = self.client.get(reverse('designation-departments'))
        self.assertEqual(response.data, ['Management'])

        response = self.client.get(reverse('designation-search') + '?q=general')
        self.assertEqual([d['code'] for d in response.data], ['GENERAL_MANAGER'])

        response = self.client.get(reverse('designation-stats'))
        self.assertEqual(response.data['active'], 2)


class SeedDesignationsCommandTest(TestCase):
    """Test cases for the seed_designations command"""

    def test_seed_is_idempotent(self):
        call_command('seed_designations', verbosity=0)
        count = Designation.objects.count()
        call_command('seed_designations', verbosity=0)
        self.assertEqual(Designation.objects.count(), count)

        mpo = Designation.objects.get(code='MPO')
        checker = HierarchyChecker(DesignationService().store)
        self.assertEqual(len(checker.ancestors(mpo.pk)), 5)

    def test_reset_reactivates_ladder(self):
        call_command('seed_designations', verbosity=0)
        Designation.objects.create(name='Legacy', code='LEGACY')
        call_command('seed_designations', reset=True, verbosity=0)
        self.assertFalse(Designation.objects.get(code='LEGACY').is_active)
        self.assertTrue(Designation.objects.get(code='MD').is_active)


class StoreFailureTest(TestCase):
    """Test cases for database failures surfacing as store errors"""

    def setUp(self):
        self.store = DesignationStore()
        self.md = self.store.insert(name='Managing Director', code='MD')
        User = get_user_model()
        self.client = APIClient()
        self.client.force_authenticate(
            user=User.objects.create_user(username='admin', password='pass1234', is_staff=True)
        )

    def test_insert_wraps_database_error(self):
        with mock.patch.object(Designation.objects, 'create', side_effect=DatabaseError('down')) as create:
            with self.assertRaises(DesignationStoreError):
                self.store.insert(name='General Manager', code='GM')
        create.assert_called_once()
        self.assertFalse(Designation.objects.filter(code='GM').exists())

    def test_update_wraps_database_error(self):
        with mock.patch.object(Designation, 'save', side_effect=DatabaseError('down')) as save:
            with self.assertRaises(DesignationStoreError):
                self.store.update(self.md.pk, name='Renamed')
        save.assert_called_once()
        self.md.refresh_from_db()
        self.assertEqual(self.md.name, 'Managing Director')

    def test_create_returns_503(self):
        with mock.patch.object(Designation.objects, 'create', side_effect=DatabaseError('down')) as create:
            response = self.client.post(
                reverse('designation-list'), {'name': 'General Manager'}, format='json'
            )
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data, {'detail': 'Designation store unavailable, please retry.'})
        create.assert_called_once()
        self.assertEqual(Designation.objects.count(), 1)

    def test_update_returns_503(self):
        before = Designation.objects.filter(pk=self.md.pk).values().get()
        with mock.patch.object(Designation, 'save', side_effect=DatabaseError('down')) as save:
            response = self.client.patch(
                reverse('designation-detail', args=[self.md.pk]), {'name': 'Renamed'}, format='json'
            )
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        save.assert_called_once()
        self.assertEqual(Designation.objects.filter(pk=self.md.pk).values().get(), before)


class DesignationAdminTest(TestCase):
    """Test cases for the designation admin change form"""

    def setUp(self):
        self.admin = get_user_model().objects.create_superuser(
            username='root', email='root@example.com', password='pass1234'
        )
        self.client.force_login(self.admin)
        service = DesignationService()
        self.md = service.create({'name': 'Managing Director'})
        self.gm = service.create({'name': 'General Manager', 'parent_id': self.md.pk})
        self.url = reverse('admin:designations_designation_change', args=[self.md.pk])

    def form_data(self, **overrides):
        data = {
            'name': self.md.name,
            'code': self.md.code,
            'description': '',
            'department': '',
            'parent': '',
            'reporting_to': '',
            'level': '0',
            'sort_order': '0',
            'min_salary': '',
            'max_salary': '',
            'responsibilities': '[]',
            'requirements': '[]',
            'is_active': 'on',
        }
        data.update(overrides)
        return data

    def test_cycle_rerenders_form(self):
        """Test a circular parent is a form error, not a logged change"""
        response = self.client.post(self.url, self.form_data(parent=str(self.gm.pk)))
        self.assertEqual(response.status_code, 200)
        self.assertIn('parent', response.context['adminform'].form.errors)
        self.assertNotContains(response, 'was changed successfully')
        self.assertFalse(LogEntry.objects.exists())
        self.md.refresh_from_db()
        self.assertIsNone(self.md.parent_id)

    def test_valid_change_is_saved_and_logged(self):
        response = self.client.post(self.url, self.form_data(sort_order='4'))
        self.assertEqual(response.status_code, 302)
        self.md.refresh_from_db()
        self.assertEqual(self.md.sort_order, 4)
        self.assertEqual(self.md.updated_by, self.admin)
        self.assertEqual(LogEntry.objects.count(), 1)
