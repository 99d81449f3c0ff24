# complihr_api/wsgi.py
import os

from complihr_api import create_app

app = create_app(os.getenv("COMPLIHR_CONFIG"))
