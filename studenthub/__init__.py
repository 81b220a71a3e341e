"""
StudentHub - async client for the university portal backend

Courses, enrollments, hostels, library, appointments, announcements,
requests and accounts, each behind one generic resource view.
"""

__version__ = "1.0.0"
