from models.evaluation import EvaluationType, EvaluationRecord
from models.absence import AbsenceRecord
from models.summary import PassStatus, SubjectOfferingSummary
from models.student import Student
from models.offering import SubjectOffering
from models.enrollment import Enrollment
from models.gradebook import GradebookData, IntegrityReport

__all__ = [
    "EvaluationType",
    "EvaluationRecord",
    "AbsenceRecord",
    "PassStatus",
    "SubjectOfferingSummary",
    "Student",
    "SubjectOffering",
    "Enrollment",
    "GradebookData",
    "IntegrityReport",
]
