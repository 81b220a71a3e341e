"""
Unit Tests for Client-side Filtering and Derived Fields
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from faker import Faker

from studenthub.exceptions import ValidationError
from studenthub.filters import (
    apply_filters,
    available_seats,
    build_predicates,
    enrollment_rate,
    equals,
    free_rooms,
    is_overdue,
    occupancy_rate,
    on_date,
    recompute_occupancy,
    round_percent,
    sort_announcements,
    text_search,
)
from studenthub.schemas import Announcement, Borrowing, Course, Hostel, Room, Student

fake = Faker()


def make_students(count: int = 20):
    departments = ['science', 'arts', 'commerce']
    return [
        Student(
            id=str(i),
            student_id=f'STU{i:04d}',
            name=fake.name(),
            email=fake.unique.email(),
            department=departments[i % 3],
            year=1 + i % 4,
        )
        for i in range(count)
    ]


class TestFilterProperties:
    """Test that filtering only ever narrows a collection"""

    @pytest.mark.parametrize('filters', [
        {'department': 'science'},
        {'year': 2},
        {'search': 'a'},
        {'department': 'arts', 'year': 3},
        {'search': 'zzzz-no-match'},
    ])
    def test_result_is_subset_satisfying_filter(self, filters):
        """Test that every kept record satisfies every predicate"""
        students = make_students()
        predicates = build_predicates(filters, search_fields=('name', 'email'))

        result = apply_filters(students, predicates)

        assert all(s in students for s in result)
        assert all(all(p(s) for p in predicates) for s in result)

    @pytest.mark.parametrize('filters', [{}, {'department': 'all'}, {'search': ''}, {'year': None}])
    def test_empty_filter_is_identity(self, filters):
        """Test that a no-op filter returns the collection unchanged"""
        students = make_students()

        result = apply_filters(students, build_predicates(filters, search_fields=('name',)))

        assert result == students

    def test_order_preserved(self):
        students = make_students()

        result = apply_filters(students, [equals('department', 'science')])

        assert result == [s for s in students if s.department == 'science']

    def test_skipped_keys_ignored(self):
        """Test that server-side filters are not applied again locally"""
        students = make_students()

        predicates = build_predicates({'status': 'graduated'}, skip=('status',))

        assert apply_filters(students, predicates) == students


class TestPredicates:
    """Test the individual predicate builders"""

    def test_text_search_case_insensitive(self):
        course = Course(code='CS101', name='Data Structures', instructor='Grace Hopper')

        assert text_search('hopper', ('instructor',))(course)
        assert text_search('  DATA ', ('name',))(course)
        assert not text_search('algebra', ('name', 'instructor'))(course)

    def test_equals_matches_enum_by_value(self):
        student = Student(student_id='S1', name='A', email='a@x.edu', status='graduated')

        assert equals('status', 'Graduated')(student)
        assert not equals('status', 'active')(student)

    def test_on_date_compares_calendar_day(self):
        announcement = Announcement(
            title='t', content='c', created_at=datetime(2025, 4, 2, 23, 59),
        )

        assert on_date('created_at', date(2025, 4, 2))(announcement)
        assert on_date('created_at', '2025-04-02')(announcement)
        assert not on_date('created_at', '2025-04-03')(announcement)

    def test_equals_text_value_matches_numbers(self):
        course = Course(code='CS1', name='Intro', credits=4, capacity=30)

        assert equals('credits', '4')(course)
        assert equals('capacity', 30)(course)
        assert not equals('credits', '3')(course)

    @pytest.mark.parametrize('day', ['03/01/2025', 'yesterday', '2025-13-01'])
    def test_on_date_rejects_unreadable_dates(self, day):
        with pytest.raises(ValidationError) as exc:
            on_date('appointment_date', day)

        assert exc.value.message == 'Dates must look like YYYY-MM-DD'
        assert exc.value.field == 'appointment_date'


class TestAnnouncementOrder:
    """Test priority-then-recency ordering"""

    def test_priority_before_recency(self):
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        old_high = Announcement(id='1', title='a', content='', priority='high', created_at=base)
        new_low = Announcement(id='2', title='b', content='', priority='low',
                               created_at=base + timedelta(days=5))
        new_high = Announcement(id='3', title='c', content='', priority='high',
                                created_at=base + timedelta(days=1))
        mid = Announcement(id='4', title='d', content='', priority='medium',
                           created_at=base + timedelta(days=9))

        ordered = sort_announcements([old_high, new_low, new_high, mid])

        assert [a.id for a in ordered] == ['3', '1', '4', '2']

    def test_missing_timestamp_sorts_last_within_priority(self):
        dated = Announcement(id='1', title='a', content='', created_at=datetime(2025, 1, 1))
        undated = Announcement(id='2', title='b', content='')

        assert [a.id for a in sort_announcements([undated, dated])] == ['1', '2']

    def test_naive_and_aware_timestamps_mix(self):
        naive = Announcement(id='1', title='a', content='', created_at=datetime(2025, 1, 2))
        aware = Announcement(id='2', title='b', content='',
                             created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))

        assert [a.id for a in sort_announcements([aware, naive])] == ['1', '2']


class TestDerivedFields:
    """Test render-time computed values"""

    def test_round_percent_halves_up(self):
        assert round_percent(1, 8) == 13  # 12.5
        assert round_percent(1, 3) == 33
        assert round_percent(2, 3) == 67

    def test_round_percent_zero_whole(self):
        assert round_percent(5, 0) == 0

    def test_course_seats_and_rate(self):
        course = Course(code='CS1', name='x', enrolled=27, capacity=30)

        assert available_seats(course) == 3
        assert enrollment_rate(course) == 90

    def test_hostel_occupancy(self):
        hostel = Hostel(name='North Hall', total_rooms=50, occupied_rooms=5)

        assert occupancy_rate(hostel) == 10
        assert free_rooms(hostel) == 45

    def test_recompute_occupancy_from_rooms(self):
        """Test that a room with any resident counts as occupied"""
        hostel = Hostel(id='1', name='East', total_rooms=4, occupied_rooms=4)
        rooms = [
            Room(hostel_id='1', room_number='1', residents=[{'name': 'A'}]),
            Room(hostel_id='1', room_number='2', residents=[{'name': 'B'}, {'name': 'C'}]),
            Room(hostel_id='1', room_number='3'),
        ]

        shown = recompute_occupancy(hostel, rooms)

        assert shown.occupied_rooms == 2
        assert hostel.occupied_rooms == 4


class TestOverdue:
    """Test overdue classification"""

    def make_borrowing(self, due, status='borrowed'):
        return Borrowing(
            id='1', student_id='s', book_id='b',
            borrow_date=date(2025, 3, 1), due_date=due, status=status,
        )

    def test_past_due_borrowed_is_overdue(self):
        borrowing = self.make_borrowing(date(2025, 3, 15))

        assert is_overdue(borrowing, datetime(2025, 3, 16, tzinfo=timezone.utc))

    def test_returned_never_overdue(self):
        """Test that a returned book is not overdue regardless of due date"""
        borrowing = self.make_borrowing(date(2020, 1, 1), status='returned')

        assert not is_overdue(borrowing, datetime(2025, 3, 16, tzinfo=timezone.utc))

    def test_due_date_boundary(self):
        """Test that a date-only due date means midnight UTC of that day"""
        borrowing = self.make_borrowing(date(2025, 3, 15))

        assert not is_overdue(borrowing, datetime(2025, 3, 15, 0, 0, tzinfo=timezone.utc))
        assert is_overdue(borrowing, datetime(2025, 3, 15, 0, 0, 1, tzinfo=timezone.utc))

    def test_future_due_not_overdue(self):
        borrowing = self.make_borrowing(date(2099, 1, 1))

        assert not is_overdue(borrowing)
