from writerly import create_app

app = create_app()
