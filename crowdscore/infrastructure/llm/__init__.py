from .analysis_service import AnalysisService, AnalysisServiceError

__all__ = ["AnalysisService", "AnalysisServiceError"]
