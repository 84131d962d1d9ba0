"""Tests for :mod:`portus_admin.controllers.users`."""

from http import HTTPStatus as status
from unittest import TestCase, mock
from urllib.parse import urlparse, parse_qs

from ... import domain
from ...tests.util import create_test_app
from .. import users

ADMIN = domain.Principal(user_id='1', username='admin', is_admin=True)
USER = domain.User(user_id='2', username='user1', email='user1@example.org',
                   credential_hash='secret')


class ControllerTestCase(TestCase):
    """Runs each test in a request context."""

    def setUp(self):
        self.app = create_test_app()
        self.ctx = self.app.test_request_context('/admin/users/2/edit?x=1')
        self.ctx.push()

    def tearDown(self):
        self.ctx.pop()


class TestHandleFailure(ControllerTestCase):
    """Failures are mapped onto status codes."""

    def test_unauthenticated(self):
        """Anonymous users are sent to log in, and then back again."""
        data, code, headers = users.handle_failure(domain.Unauthenticated())
        self.assertEqual(code, status.FOUND)
        location = urlparse(headers['Location'])
        self.assertEqual(location.path, '/users/sign_in')
        self.assertEqual(parse_qs(location.query)['next_page'],
                         ['/admin/users/2/edit?x=1'])

    def test_not_admin(self):
        """Users without privileges are unauthorized."""
        data, code, _ = users.handle_failure(
            domain.Forbidden(domain.Forbidden.NOT_ADMIN)
        )
        self.assertEqual(code, status.UNAUTHORIZED)
        self.assertEqual(data['reason'], users.NOT_ADMIN)

    def test_self_action(self):
        """Admins acting on themselves are forbidden."""
        data, code, _ = users.handle_failure(
            domain.Forbidden(domain.Forbidden.SELF_ACTION)
        )
        self.assertEqual(code, status.FORBIDDEN)
        self.assertEqual(data['reason'], users.SELF_ACTION)

    def test_not_found(self):
        """Unknown targets are not found."""
        _, code, _ = users.handle_failure(domain.NotFound('user', '9'))
        self.assertEqual(code, status.NOT_FOUND)

    def test_invalid(self):
        """Invalid data is unprocessable."""
        data, code, _ = users.handle_failure(
            domain.ValidationError('email', 'is invalid')
        )
        self.assertEqual(code, status.UNPROCESSABLE_ENTITY)
        self.assertEqual(data, {'errors': {'email': ['is invalid']}})

    def test_external(self):
        """Directory refusals are unprocessable, and kept apart."""
        data, code, _ = users.handle_failure(
            domain.ExternalCheckFailed('reserved')
        )
        self.assertEqual(code, status.UNPROCESSABLE_ENTITY)
        self.assertEqual(data, {'errors': {'username': ['reserved']}})

    def test_not_a_failure(self):
        """Anything else is a programming error."""
        with self.assertRaises(TypeError):
            users.handle_failure(None)


class TestControllers(ControllerTestCase):
    """Successful lifecycle results are rendered."""

    @mock.patch(f'{users.__name__}.lifecycle')
    def test_list_params(self, mock_lifecycle):
        """Paging parameters are passed along; junk gets defaults."""
        mock_lifecycle.list_users.return_value = domain.Result(
            domain.UserPage(users=[USER], page=1, per_page=25, total=1)
        )
        data, code, _ = users.list_users(ADMIN, {'page': 'foo'})
        self.assertEqual(code, status.OK)
        mock_lifecycle.list_users.assert_called_once_with(ADMIN, 1, 25)
        self.assertEqual(data['total'], 1)
        self.assertNotIn('credential_hash', data['users'][0])

    @mock.patch(f'{users.__name__}.lifecycle')
    def test_list_bounds(self, mock_lifecycle):
        """Paging parameters are kept within bounds."""
        mock_lifecycle.list_users.return_value = domain.Result(
            domain.UserPage(users=[], page=1, per_page=1, total=0)
        )
        users.list_users(ADMIN, {'page': str(10 ** 20),
                                 'per_page': '100000'})
        mock_lifecycle.list_users.assert_called_with(
            ADMIN, users.MAX_PAGE, users.MAX_PER_PAGE
        )
        users.list_users(ADMIN, {'page': '-3', 'per_page': '0'})
        mock_lifecycle.list_users.assert_called_with(ADMIN, 1, 1)

    @mock.patch(f'{users.__name__}.lifecycle')
    def test_create(self, mock_lifecycle):
        """A created user is at the location of its edit view."""
        mock_lifecycle.create_user.return_value = domain.Result(USER)
        data, code, headers = users.create_user(ADMIN, {})
        self.assertEqual(code, status.CREATED)
        self.assertEqual(headers['Location'], '/admin/users/2/edit')
        self.assertEqual(data['user']['username'], 'user1')

    @mock.patch(f'{users.__name__}.lifecycle')
    def test_update_invalid(self, mock_lifecycle):
        """Invalid updates go back to the edit view, with the errors."""
        mock_lifecycle.update_user.return_value = domain.Result(
            error=domain.ValidationError('email', 'has already been taken')
        )
        data, code, headers = users.update_user(ADMIN, '2', {})
        self.assertEqual(code, status.FOUND)
        self.assertEqual(headers['Location'], '/admin/users/2/edit')
        self.assertEqual(data['errors'],
                         {'email': ['has already been taken']})

    @mock.patch(f'{users.__name__}.lifecycle')
    def test_update_denied(self, mock_lifecycle):
        """Denied updates are not redirected to the edit view."""
        mock_lifecycle.update_user.return_value = domain.Result(
            error=domain.Forbidden(domain.Forbidden.SELF_ACTION)
        )
        _, code, _ = users.update_user(ADMIN, '1', {})
        self.assertEqual(code, status.FORBIDDEN)

    @mock.patch(f'{users.__name__}.lifecycle')
    def test_destroy(self, mock_lifecycle):
        """Deletion goes back to the listing."""
        mock_lifecycle.destroy_user.return_value = domain.Result(USER)
        _, code, headers = users.destroy_user(ADMIN, '2')
        self.assertEqual(code, status.FOUND)
        self.assertEqual(headers['Location'], '/admin/users')
