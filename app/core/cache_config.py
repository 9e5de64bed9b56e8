"""Cache configuration and TTL settings"""

# Cache TTL (Time To Live) configurations in seconds. 0 means the entry never expires.
CACHE_TTL = {
    # Course snapshots are dropped on every content write, never expired
    "course_details": 0,
    "course_catalogue": 300,  # 5 minutes
    "user_courses": 180,      # 3 minutes

    "quiz_list": 3600,        # 1 hour
    "progress": 604800,       # 7 days
    "notifications": 120,     # 2 minutes
    "categories": 3600,       # 1 hour
    "levels": 3600,           # 1 hour
}

# Cache key patterns
CACHE_KEYS = {
    "course_details": "course:details:{}",
    "course_catalogue": "courses:catalogue",
    "user_courses": "courses:user:{}:{}",

    "quiz_list": "quizzes:{}",
    "progress": "progress:{}:{}",
    "notifications": "notifications:author:{}",
    "categories": "categories:all",
    "levels": "levels:all",
}

# Cache invalidation patterns - what to clear when data changes
INVALIDATION_PATTERNS = {
    # the snapshot key itself is deleted separately, see CacheService.invalidate_course_cache
    "course_update": [
        "courses:catalogue",
        "courses:user:*",
        "progress:*:{}",
    ],
    "user_update": [
        "courses:user:{}:*",
        "progress:{}:*",
    ],
    "quiz_update": [
        "quizzes:*",
    ],
    "progress_update": [
        "progress:{}:{}",
    ],
    "category_update": [
        "categories:*",
    ],
    "level_update": [
        "levels:*",
    ],
    "notification_update": [
        "notifications:author:{}",
    ],
}
