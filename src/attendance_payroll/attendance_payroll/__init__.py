"""Attendance & Payroll package.

Feature modules (attendance, salary, payroll, reports, ...) each keep a thin
Flask controller layer on top of service/repository layers.
"""
