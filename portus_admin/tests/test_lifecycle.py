"""Tests for :mod:`portus_admin.lifecycle`."""

from unittest import TestCase, mock

from .. import domain, lifecycle
from ..services import datastore, activity
from .util import create_test_app, add_user

NEW = {
    'username': 'solomon',
    'email': 'solomon@example.org',
    'password': 'password',
    'password_confirmation': 'password'
}


class LifecycleTestCase(TestCase):
    """Runs each test inside an app context, with two users."""

    def setUp(self):
        self.app = create_test_app()
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.admin = add_user('admin', admin=True).as_principal()
        self.user = add_user('user1')

    def tearDown(self):
        datastore.drop_all()
        self.ctx.pop()


class TestDenied(LifecycleTestCase):
    """Denied operations fail with a typed error, and change nothing."""

    def test_anonymous(self):
        """Every operation requires a principal."""
        target = self.user.user_id
        for result in (lifecycle.list_users(None),
                       lifecycle.new_user(None),
                       lifecycle.create_user(None, NEW),
                       lifecycle.edit_user(None, target),
                       lifecycle.update_user(None, target, {'email': 'a@b.cd'}),
                       lifecycle.toggle_admin(None, target),
                       lifecycle.destroy_user(None, target)):
            self.assertFalse(result.ok)
            self.assertIsInstance(result.error, domain.Unauthenticated)
        self.assertEqual(datastore.count_users(), 2)
        self.assertEqual(activity.count_entries(), 0)

    def test_not_admin(self):
        """Regular users are refused, even on their own account."""
        principal = self.user.as_principal()
        result = lifecycle.update_user(principal, self.user.user_id,
                                       {'email': 'new@example.org'})
        self.assertIsInstance(result.error, domain.Forbidden)
        self.assertEqual(result.error.reason, domain.Forbidden.NOT_ADMIN)
        self.assertEqual(datastore.get_user(self.user.user_id).email,
                         self.user.email)

    def test_self_actions(self):
        """Admins cannot edit, update, delete, or toggle themselves."""
        me = self.admin.user_id
        for result in (lifecycle.edit_user(self.admin, me),
                       lifecycle.update_user(self.admin, me, {}),
                       lifecycle.toggle_admin(self.admin, me),
                       lifecycle.destroy_user(self.admin, me)):
            self.assertIsInstance(result.error, domain.Forbidden)
            self.assertEqual(result.error.reason,
                             domain.Forbidden.SELF_ACTION)
        self.assertTrue(datastore.get_user(me).admin)
        self.assertEqual(activity.count_entries(), 0)

    def test_denied_before_lookup(self):
        """Authorization is decided before the target is looked up."""
        result = lifecycle.edit_user(self.user.as_principal(), '9999')
        self.assertIsInstance(result.error, domain.Forbidden)


class TestCreateUser(LifecycleTestCase):
    """Admins can create new, non-admin users."""

    def test_create(self):
        """The user is stored, and the creation is recorded."""
        result = lifecycle.create_user(self.admin, NEW)
        self.assertTrue(result.ok)
        self.assertEqual(result.value.username, 'solomon')
        self.assertFalse(result.value.admin)
        self.assertEqual(datastore.count_users(), 3)

        entries = activity.list_entries()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].key, 'user.create')
        self.assertEqual(entries[0].owner_id, self.admin.user_id)
        self.assertEqual(entries[0].trackable_id, result.value.user_id)

    def test_admin_is_not_permitted(self):
        """The ``admin`` field is dropped before anything is stored."""
        result = lifecycle.create_user(self.admin, dict(NEW, admin='1'))
        self.assertTrue(result.ok)
        self.assertFalse(datastore.get_user(result.value.user_id).admin)

    def test_invalid(self):
        """Invalid data fails with the offending field."""
        result = lifecycle.create_user(self.admin,
                                       dict(NEW, email='notanemail'))
        self.assertIsInstance(result.error, domain.ValidationError)
        self.assertEqual(result.error.field, 'email')
        self.assertEqual(datastore.count_users(), 2)
        self.assertEqual(activity.count_entries(), 0)

    def test_username_taken(self):
        """Usernames are unique."""
        result = lifecycle.create_user(self.admin,
                                       dict(NEW, username='user1'))
        self.assertIsInstance(result.error, domain.ValidationError)
        self.assertEqual(result.error.field, 'username')
        self.assertEqual(result.error.reason, datastore.TAKEN)

    @mock.patch(f'{lifecycle.__name__}.directory')
    def test_directory_refuses(self, mock_directory):
        """A directory refusal fails the creation, with its message."""
        mock_directory.check_user.return_value = 'name is reserved'
        result = lifecycle.create_user(self.admin, NEW)
        self.assertIsInstance(result.error, domain.ExternalCheckFailed)
        self.assertEqual(result.error.message, 'name is reserved')
        mock_directory.check_user.assert_called_once_with('solomon')
        self.assertEqual(datastore.count_users(), 2)
        self.assertEqual(activity.count_entries(), 0)

    @mock.patch(f'{lifecycle.__name__}.directory')
    def test_invalid_not_sent_to_directory(self, mock_directory):
        """Invalid data fails before the directory is consulted."""
        result = lifecycle.create_user(self.admin,
                                       dict(NEW, username='bob#x'))
        self.assertIsInstance(result.error, domain.ValidationError)
        self.assertEqual(result.error.field, 'username')
        mock_directory.check_user.assert_not_called()

    @mock.patch(f'{lifecycle.__name__}.directory')
    def test_directory_accepts(self, mock_directory):
        """The user is created if the directory has no objection."""
        mock_directory.check_user.return_value = None
        result = lifecycle.create_user(self.admin, NEW)
        self.assertTrue(result.ok)


class TestUpdateUser(LifecycleTestCase):
    """Admins can change the username, email and password of others."""

    def test_partial_update(self):
        """Only submitted fields change."""
        result = lifecycle.update_user(self.admin, self.user.user_id,
                                       {'email': 'Other@Example.org '})
        self.assertTrue(result.ok)
        user = datastore.get_user(self.user.user_id)
        self.assertEqual(user.email, 'other@example.org')
        self.assertEqual(user.username, self.user.username)
        self.assertEqual(user.credential_hash, self.user.credential_hash)

        entry = activity.list_entries()[-1]
        self.assertEqual(entry.key, 'user.update')
        self.assertEqual(entry.parameters, {'fields': ['email']})

    def test_admin_is_not_permitted(self):
        """The admin flag cannot be changed via update."""
        result = lifecycle.update_user(self.admin, self.user.user_id,
                                       {'admin': True})
        self.assertTrue(result.ok)
        self.assertFalse(datastore.get_user(self.user.user_id).admin)

    def test_email_taken(self):
        """Another user's address cannot be taken."""
        result = lifecycle.update_user(self.admin, self.user.user_id,
                                       {'email': 'admin@example.org'})
        self.assertIsInstance(result.error, domain.ValidationError)
        self.assertEqual(result.error.field, 'email')
        self.assertEqual(datastore.get_user(self.user.user_id).email,
                         self.user.email)
        self.assertEqual(activity.count_entries(), 0)

    def test_password_mismatch(self):
        """A password change must match its confirmation."""
        result = lifecycle.update_user(self.admin, self.user.user_id, {
            'password': 'newpassword',
            'password_confirmation': 'otherpassword'
        })
        self.assertIsInstance(result.error, domain.ValidationError)
        self.assertEqual(result.error.field, 'password_confirmation')

    def test_no_such_user(self):
        """Unknown users are not found."""
        result = lifecycle.update_user(self.admin, '9999',
                                       {'email': 'x@example.org'})
        self.assertIsInstance(result.error, domain.NotFound)
        self.assertEqual(result.error.resource_id, '9999')


class TestToggleAdmin(LifecycleTestCase):
    """Admins can grant and revoke privileges on other users."""

    def test_toggle(self):
        """The flag flips, and the new value is recorded."""
        result = lifecycle.toggle_admin(self.admin, self.user.user_id)
        self.assertTrue(result.value.admin)
        self.assertTrue(datastore.get_user(self.user.user_id).admin)
        entry = activity.list_entries()[-1]
        self.assertEqual(entry.parameters, {'admin': True})

        result = lifecycle.toggle_admin(self.admin, self.user.user_id)
        self.assertFalse(result.value.admin)

    def test_no_such_user(self):
        """Unknown users are not found."""
        result = lifecycle.toggle_admin(self.admin, '9999')
        self.assertIsInstance(result.error, domain.NotFound)


class TestDestroyUser(LifecycleTestCase):
    """Admins can delete other users."""

    def test_destroy(self):
        """The user is gone, and their entries survive."""
        activity.record('update', owner_id=self.user.user_id,
                        owner_name=self.user.username)
        result = lifecycle.destroy_user(self.admin, self.user.user_id)
        self.assertTrue(result.ok)
        self.assertEqual(result.value.username, 'user1')
        with self.assertRaises(datastore.NoSuchUser):
            datastore.get_user(self.user.user_id)

        entries = activity.list_entries()
        self.assertEqual(len(entries), 2)
        self.assertEqual(entries[0].owner_name, 'user1')
        self.assertEqual(entries[1].key, 'user.destroy')
        self.assertEqual(entries[1].username, 'user1')
        self.assertEqual(entries[1].owner_name, 'admin')

    def test_entries_not_inherited(self):
        """A new user never takes over the entries of a deleted one."""
        activity.record('create', owner_id=self.user.user_id,
                        owner_name=self.user.username,
                        trackable_type='team', trackable_id='1')
        lifecycle.destroy_user(self.admin, self.user.user_id)
        created = lifecycle.create_user(self.admin, NEW).value
        self.assertNotEqual(created.user_id, self.user.user_id)
        self.assertEqual(activity.list_entries(owner_id=created.user_id), [])
        self.assertEqual(activity.list_entries(owner_id=self.user.user_id),
                         [])

    def test_renamed_before_destroy(self):
        """Both entries carry the name the user had when deleted."""
        activity.record('create', owner_id=self.user.user_id,
                        owner_name=self.user.username,
                        trackable_type='team', trackable_id='1')
        lifecycle.update_user(self.admin, self.user.user_id,
                              {'username': 'carol'})
        lifecycle.destroy_user(self.admin, self.user.user_id)

        entries = activity.list_entries()
        self.assertEqual(entries[0].owner_name, 'carol')
        self.assertIsNone(entries[0].owner_id)
        self.assertEqual(entries[-1].key, 'user.destroy')
        self.assertEqual(entries[-1].username, 'carol')

    def test_no_such_user(self):
        """Unknown users are not found, and nothing is recorded."""
        result = lifecycle.destroy_user(self.admin, '9999')
        self.assertIsInstance(result.error, domain.NotFound)
        self.assertEqual(activity.count_entries(), 0)

    @mock.patch(f'{lifecycle.__name__}.activity.record')
    def test_recording_fails(self, mock_record):
        """If the entry cannot be recorded, the user is not deleted."""
        mock_record.side_effect = RuntimeError('nope')
        with self.assertRaises(RuntimeError):
            lifecycle.destroy_user(self.admin, self.user.user_id)
        self.assertEqual(datastore.get_user(self.user.user_id).username,
                         'user1')


class TestListUsers(LifecycleTestCase):
    """Admins can page through users."""

    def test_list(self):
        """Users are ordered by username."""
        result = lifecycle.list_users(self.admin, page=1, per_page=25)
        self.assertEqual([u.username for u in result.value.users],
                         ['admin', 'user1'])
        self.assertEqual(result.value.total, 2)
        self.assertEqual(result.value.pages, 1)

    def test_new_user(self):
        """The new-user form is blank."""
        result = lifecycle.new_user(self.admin)
        self.assertTrue(result.ok)
        self.assertTrue(all(value == '' for value in result.value.values()))
