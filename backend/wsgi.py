from storepos import create_app

app = create_app()
