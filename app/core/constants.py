from enum import Enum


class RoleEnum(str, Enum):
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    USER = "user"

class CourseLevelEnum(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ALL = "all"

class QuizDifficultyEnum(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class QuestionTypeEnum(str, Enum):
    SINGLE_CHOICE = "single-choice"
    MULTIPLE_CHOICE = "multiple-choice"

class NotificationStatusEnum(str, Enum):
    UNREAD = "unread"
    READ = "read"

QUIZ_SECTION_ITEM_PREFIX = "quiz-section-"
