# src/aichat/config.py

# --- File discovery ---

SUPPORTED_EXTENSIONS = frozenset([
    ".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".cpp", ".c", ".h", ".hpp",
    ".cs", ".php", ".rb", ".go", ".rs", ".swift", ".kt", ".scala",
    ".html", ".htm", ".css", ".scss", ".sass", ".less",
    ".json", ".xml", ".yaml", ".yml", ".toml", ".ini", ".cfg",
    ".md", ".txt", ".rtf", ".csv",
    ".sql", ".sh", ".bat", ".ps1",
    ".dockerfile", ".gitignore", ".env",
])

DEFAULT_EXCLUDE_PATTERNS = [
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    ".nuxt",
    "coverage",
    ".nyc_output",
    "logs",
    "*.log",
    ".DS_Store",
    "Thumbs.db",
    ".env.local",
    ".env.production",
]

# Base names that sort ahead of everything else (compared lower-cased)
MANIFEST_NAMES = ("package.json", "pyproject.toml", "cargo.toml", "composer.json")
README_PREFIX = "readme"

MAX_FILE_SIZE = 50 * 1024
MAX_TOTAL_SIZE = 200 * 1024
MAX_DEPTH = 3
SHALLOW_DEPTH = 1

# --- Relevance phrase sets ---
# Bump the version whenever a phrase is added, removed or moved between sets.

PHRASE_SET_VERSION = "1"

GENERAL_KNOWLEDGE_PHRASES = (
    "what is artificial intelligence", "what is ai", "what is machine learning",
    "what is programming", "what is javascript", "what is python",
    "explain artificial intelligence", "explain machine learning",
    "how does ai work", "how does machine learning work",
    "define", "tell me about", "what are the benefits of",
    "what are the advantages of", "what are the disadvantages of",
)

PROJECT_REFERENCE_PHRASES = (
    "this project", "this code", "this file", "this repo", "this repository",
    "my project", "my code", "my file", "my repo", "my repository",
    "current project", "current code", "current directory",
    "explain this", "analyze this", "review this", "what does this do",
    "how does this work", "what is this", "describe this",
)

PROJECT_KEYWORDS = (
    "implement", "fix", "bug", "refactor", "improve", "optimize",
    "package.json", "dependencies", "scripts", "build", "test",
    "function", "class", "component", "module", "variable",
    "structure", "architecture", "setup", "configuration",
)

# --- Generation ---

DEFAULT_MODEL = "gemini-2.0-flash-exp"
API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
MAX_OUTPUT_TOKENS = 1000
TEMPERATURE = 0.7
REQUEST_TIMEOUT_S = 60

API_KEY_ENV_VAR = "GOOGLE_API_KEY"
API_KEY_URL = "https://makersuite.google.com/app/apikey"
