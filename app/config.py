# file: config.py

import os
from dotenv import load_dotenv

load_dotenv()

# Path to the service account JSON; application default credentials are used when missing
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "serviceAccountKey.json")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Android notification channels registered by the mobile app
CHAT_CHANNEL_ID = os.getenv("CHAT_CHANNEL_ID", "chat_messages")
PROJECT_CHANNEL_ID = os.getenv("PROJECT_CHANNEL_ID", "project_notifications")

MESSAGE_PREVIEW_LENGTH = int(os.getenv("MESSAGE_PREVIEW_LENGTH", "100"))

CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"
