from fastapi import APIRouter
from talentflow.routers import (
    auth, users, employees, departments, career, projects,
    collaborations, annual_objectives, coaching, notifications, admin,
)

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(users.router, tags=["User Provisioning"])
api_router.include_router(employees.router, tags=["Employees"])
api_router.include_router(departments.router, tags=["Departments"])
api_router.include_router(career.router, tags=["Career Framework"])
api_router.include_router(projects.router, tags=["Projects"])
api_router.include_router(collaborations.router, tags=["Evaluations"])
api_router.include_router(annual_objectives.router, tags=["Annual Objectives"])
api_router.include_router(coaching.router, tags=["Coaching"])
api_router.include_router(notifications.router, tags=["Notifications"])
api_router.include_router(admin.router, tags=["Administration"])
