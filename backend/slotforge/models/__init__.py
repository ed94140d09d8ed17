from slotforge.models.lab_rotation import LabRotationRecord  # noqa: F401
from slotforge.models.timetable import StoredTimetable  # noqa: F401
