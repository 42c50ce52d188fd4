"""surveyflow_server — FastAPI service that hosts survey sessions.

Live sessions are held in memory (one orchestrator per visit); snapshots
posted by the recorder are persisted through ``surveyflow_db``.
"""
