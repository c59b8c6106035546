from farmledger import create_app

app = create_app()
