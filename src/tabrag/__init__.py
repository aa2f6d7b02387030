from dotenv import load_dotenv

# Load environment variables from .env before any module reads os.environ
# (store selection, OpenAI and Firecrawl keys).
load_dotenv()
