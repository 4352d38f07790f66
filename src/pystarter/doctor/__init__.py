"""
Doctor Module.

Checks an existing project against the setup checklist.
"""

from pystarter.doctor.checks import CheckResult, CheckStatus, DoctorReport, ProjectDoctor

__all__ = [
    "CheckResult",
    "CheckStatus",
    "DoctorReport",
    "ProjectDoctor",
]
