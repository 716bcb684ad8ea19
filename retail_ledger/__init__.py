from dotenv import load_dotenv

# Load environment variables from .env file; values already in the environment win
load_dotenv()
