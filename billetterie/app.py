# module billetterie.app
from billetterie.app_setup.factory import create_app

app = create_app()
