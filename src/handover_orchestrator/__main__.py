from src.handover_orchestrator.cli import app

app()
