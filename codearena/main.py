import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from codearena import config
from codearena.admin.admin_router import router as admin_router
from codearena.assignments.assignment_router import router as assignment_router
from codearena.auth.auth_router import router as auth_router
from codearena.community.community_router import router as community_router
from codearena.contests.contest_router import router as contest_router
from codearena.courses.course_router import router as course_router
from codearena.courses.enrollment_router import router as enrollment_router
from codearena.database import create_indexes, db_manager
from codearena.judge.submission_router import router as submission_router
from codearena.leaderboard.leaderboard_router import router as leaderboard_router
from codearena.problems.problem_router import router as problem_router
from codearena.system.health_router import router as health_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="CodeArena API", version=config.VERSION)


@app.on_event("startup")
async def startup_event():
    db_manager.connect()
    await create_indexes(db_manager.get_database())
    logger.info("CodeArena API %s started", config.VERSION)


@app.on_event("shutdown")
async def shutdown_event():
    db_manager.disconnect()


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== ERROR HANDLERS ====================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid data", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# ==================== ROUTER REGISTRATION ====================
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(submission_router)
app.include_router(problem_router)
app.include_router(contest_router)
app.include_router(course_router)
app.include_router(enrollment_router)
app.include_router(assignment_router)
app.include_router(community_router)
app.include_router(leaderboard_router)
app.include_router(admin_router)
# ============================================================
