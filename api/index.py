import sys
import os

# Add the project root to sys.path so the serverless runtime can import unisaver
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from unisaver.main import app  # noqa: E402,F401

# Vercel needs the variable 'app'
