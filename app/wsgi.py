from app.groupboard import create_app

app = create_app()
