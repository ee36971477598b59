import os

AWS_REGION = os.environ.get("AWS_REGION", "ap-south-1")

MAX_STAY = 30
MAX_WRITE_ATTEMPTS = 3

MAX_GUEST_NAME_LENGTH = 100
MAX_GUEST_EMAIL_LENGTH = 100
MAX_GUEST_PHONE_LENGTH = 20
MIN_GUEST_PHONE_LENGTH = 7
MAX_SPECIAL_REQUESTS_LENGTH = 500
