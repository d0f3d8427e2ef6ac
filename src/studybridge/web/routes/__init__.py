"""Route handlers for the Web API, one module per resource."""

from studybridge.web.routes.analyses import router as analyses_router
from studybridge.web.routes.classrooms import router as classrooms_router
from studybridge.web.routes.content import router as content_router
from studybridge.web.routes.profiles import router as profiles_router
from studybridge.web.routes.sessions import router as sessions_router
from studybridge.web.routes.subjects import router as subjects_router
from studybridge.web.routes.teacher import router as teacher_router
from studybridge.web.routes.topics import router as topics_router
from studybridge.web.routes.user_topics import router as user_topics_router
from studybridge.web.routes.users import router as users_router

__all__ = [
    "analyses_router",
    "classrooms_router",
    "content_router",
    "profiles_router",
    "sessions_router",
    "subjects_router",
    "teacher_router",
    "topics_router",
    "user_topics_router",
    "users_router",
]
