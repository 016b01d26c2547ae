from fastapi import APIRouter

from eduverse.api.v1.endpoints import (
    admin,
    auth,
    chat,
    courses,
    dashboard,
    enrollment,
    notifications,
    progress,
    quizzes,
    uploads,
    users,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(courses.router, prefix="/courses", tags=["Courses"])
api_router.include_router(admin.router, prefix="/admin", tags=["Administration"])
api_router.include_router(enrollment.router, tags=["Enrollment"])
api_router.include_router(progress.router, prefix="/progress", tags=["Progress"])
api_router.include_router(quizzes.router, prefix="/quizzes", tags=["Quizzes"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(uploads.router, prefix="/uploads", tags=["Uploads"])
api_router.include_router(chat.router, prefix="/chat", tags=["Assistant"])
