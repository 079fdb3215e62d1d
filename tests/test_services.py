import jwt
import pytest

from ishariu import services
from ishariu.models import Course, User
from ishariu.repositories import RecordStore


@pytest.fixture
def users(mongo_db):
    return RecordStore(mongo_db, User)


@pytest.fixture
def courses(mongo_db):
    return RecordStore(mongo_db, Course)


@pytest.fixture
def accounts(users, courses):
    return services.AccountService(users, courses)


@pytest.fixture
def catalog(courses, users):
    return services.CourseService(courses, users)


def test_register_hashes_password(accounts, users):
    user = accounts.register('frank', 'pw123', 'frank@example.com')
    stored = users.fetch_by_id(user.id)
    assert stored.password_hash != 'pw123'
    assert services.PWD_CTX.verify('pw123', stored.password_hash)


def test_register_rejects_duplicate_username(accounts):
    assert accounts.register('gina', 'pw') is not None
    assert accounts.register('gina', 'other') is None


def test_authenticate_returns_token_with_identity(accounts):
    user = accounts.register('hank', 'pw')
    token = accounts.authenticate('hank', 'pw')
    payload = jwt.decode(token, services.JWT_SECRET, algorithms=[services.JWT_ALGORITHM])
    assert payload['user_id'] == user.id
    assert payload['role'] == 'User'
    assert accounts.authenticate('hank', 'wrong') is None
    assert accounts.authenticate('nobody', 'pw') is None


def test_profile_skips_missing_courses(accounts, users, courses):
    course = Course(title='Intro')
    courses.insert(course)
    user = User(username='ivy', created_courses=[course.id, 'gone'], enrolled_courses=['gone'])
    users.insert(user)
    profile = accounts.get_profile(user.id)
    assert [c.id for c in profile['created_courses']] == [course.id]
    assert profile['enrolled_courses'] == []
    assert accounts.get_profile('missing') is None


def test_update_profile_merges_non_empty_fields(accounts, users):
    user = accounts.register('jack', 'pw', 'jack@example.com')
    updated = accounts.update_profile(user.id, user.id, {
        'email': None,
        'username': 'jackie',
        'password': '',
        'profile_color': '#00ff00',
        'allow_access_to_age_restricted_content': True,
        'use_data_to_improve_ishariu': False,
    })
    stored = users.fetch_by_id(user.id)
    assert stored == updated
    assert stored.email == 'jack@example.com'
    assert stored.username == 'jackie'
    assert stored.profile_color == '#00ff00'
    assert stored.allow_access_to_age_restricted_content is True
    assert services.PWD_CTX.verify('pw', stored.password_hash)


def test_update_profile_of_another_user_forbidden(accounts):
    me = accounts.register('kate', 'pw')
    other = accounts.register('liam', 'pw')
    with pytest.raises(PermissionError):
        accounts.update_profile(me.id, other.id, {'username': 'hijacked'})


def test_change_password_rules(accounts):
    user = accounts.register('mia', 'old')
    assert accounts.change_password(user.id, 'bad', 'new')['success'] is False
    assert accounts.change_password(user.id, 'old', 'old')['success'] is False
    assert accounts.change_password(user.id, 'old', 'new') == {'success': True}
    assert accounts.authenticate('mia', 'new')
    assert accounts.change_password('missing', 'a', 'b') is None


def test_update_setting(accounts, users):
    user = accounts.register('noah', 'pw')
    accounts.update_setting(user.id, 'use_data_to_improve_ishariu', True)
    assert users.fetch_by_id(user.id).use_data_to_improve_ishariu is True
    with pytest.raises(ValueError):
        accounts.update_setting(user.id, 'role', True)


def test_delete_account_requires_password(accounts, users):
    user = accounts.register('olga', 'pw')
    assert accounts.delete_account(user.id, 'wrong')['success'] is False
    assert users.fetch_by_id(user.id) is not None
    assert accounts.delete_account(user.id, 'pw') == {'success': True}
    assert users.fetch_by_id(user.id) is None


def test_create_course_records_creator(catalog, accounts, users):
    creator = accounts.register('pete', 'pw')
    course = catalog.create_course(creator.id, {'title': 'Rust', 'price': 20.0})
    assert course.creator_id == creator.id
    assert users.fetch_by_id(creator.id).created_courses == [course.id]
    assert catalog.create_course('missing', {'title': 'x'}) is None


def test_enroll_counts_revenue_once(catalog, accounts, users):
    creator = accounts.register('quinn', 'pw')
    student = accounts.register('rosa', 'pw')
    course = catalog.create_course(creator.id, {'title': 'Go', 'price': 15.0})
    catalog.enroll(student.id, course.id)
    catalog.enroll(student.id, course.id)
    stored = catalog.get_course(course.id)
    assert stored.enrolled_count == 1
    assert stored.revenue_generated == 15.0
    assert users.fetch_by_id(student.id).enrolled_courses == [course.id]
    assert catalog.enroll(student.id, 'missing') is None


def test_best_sellers_and_search(catalog, courses):
    for title, revenue, category in [('Python Basics', 100, 'dev'), ('Advanced Python', 500, 'dev'),
                                     ('Watercolor', 10, 'Art'), ('Sketching', 1, 'art')]:
        courses.insert(Course(title=title, revenue_generated=revenue, category=category))
    assert [c.title for c in catalog.best_sellers()] == ['Advanced Python', 'Python Basics', 'Watercolor']
    assert {c.title for c in catalog.search(title='python')} == {'Python Basics', 'Advanced Python'}
    assert {c.title for c in catalog.search(category='art')} == {'Watercolor', 'Sketching'}
    assert len(catalog.search()) == 4


def test_update_profile_ignores_empty_strings(accounts, users):
    user = accounts.register('alice', 'pw', 'a@example.com')
    accounts.update_profile(user.id, user.id, {'profile_color': 'teal'})
    accounts.update_profile(user.id, user.id, {'email': '', 'username': '', 'profile_color': ''})
    stored = users.fetch_by_id(user.id)
    assert stored.username == 'alice'
    assert stored.email == 'a@example.com'
    assert stored.profile_color == 'teal'
    assert accounts.authenticate('alice', 'pw')


def test_update_profile_rejects_taken_username(accounts, users):
    accounts.register('alice', 'pw')
    bob = accounts.register('bob', 'pw')
    with pytest.raises(ValueError):
        accounts.update_profile(bob.id, bob.id, {'username': 'alice'})
    assert sorted(u.username for u in users.fetch_all()) == ['alice', 'bob']


def test_update_profile_keeps_own_username(accounts, users):
    user = accounts.register('alice', 'pw')
    accounts.update_profile(user.id, user.id, {'username': 'alice', 'email': 'new@example.com'})
    assert users.fetch_by_id(user.id).email == 'new@example.com'
