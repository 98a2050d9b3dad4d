"""
FastAPI dependencies wiring services to the application's data source
"""

from fastapi import Request

from learning_profile.services.classroom_service import ClassroomAnalytics
from learning_profile.services.consolidation_service import ProfileConsolidator
from learning_profile.services.data_source import DataSource
from learning_profile.services.session_service import SessionResolver


def get_data_source(request: Request) -> DataSource:
    """Data source chosen when the application was built"""
    return request.app.state.data_source


def get_consolidator(request: Request) -> ProfileConsolidator:
    return ProfileConsolidator(get_data_source(request))


def get_classroom_analytics(request: Request) -> ClassroomAnalytics:
    return ClassroomAnalytics(get_data_source(request))


def get_session_resolver(request: Request) -> SessionResolver:
    return SessionResolver(get_data_source(request))
