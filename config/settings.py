"""
Configuration settings for the Objective Calendar Planner
"""
import os
from typing import Dict, Any, Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


class Config:
    # LLM Configuration
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")  # "openai" or "mock"
    DEFAULT_MODEL = os.getenv("LLM_MODEL", "gpt-4o")
    TEMPERATURE = _optional_float("LLM_TEMPERATURE")  # None = provider default
    LLM_TIMEOUT = _optional_float("LLM_TIMEOUT")  # None = transport default
    LLM_MAX_RETRIES = 0  # failures surface to the user, who retries manually
    MOCK_SEED = int(os.getenv("MOCK_SEED", "0"))

    # API Configuration
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "5000"))
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-planner-secret")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE") or None

    # Planning defaults
    DEFAULT_WORKING_HOURS_START = "09:00"
    DEFAULT_WORKING_HOURS_END = "18:00"
    DEFAULT_MEETING_DENSITY = "medium"
    PLANNING_WINDOW_DAYS = 7

    # Calendar grid
    PIXELS_PER_HOUR = 60
    MIN_EVENT_HEIGHT = 30  # pixels, i.e. 30 minutes
    DEFAULT_GRID_START_HOUR = 9
    DEFAULT_GRID_END_HOUR = 19  # exclusive
    MAX_WEEK_OFFSET = 52  # weeks either side of the anchor

    # Session store
    STORE_MAX_BLOB_BYTES = int(os.getenv("STORE_MAX_BLOB_BYTES", str(512 * 1024)))
    SESSION_MAX_COUNT = int(os.getenv("SESSION_MAX_COUNT", "1000"))
    SESSION_IDLE_TTL = float(os.getenv("SESSION_IDLE_TTL", "7200"))  # seconds

    # Date/Time Formats
    DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"
    DATE_FORMAT = "%Y-%m-%d"

    # Prompts
    CONTEXT_SYSTEM_PROMPT = (
        "Tu es un expert en dynamique de travail et en gestion de calendrier. "
        "Génère un contexte professionnel réaliste pour une application de planification "
        "de calendrier. Toutes tes réponses doivent être en français."
    )

    CONTEXT_GENERATION_PROMPT = """Génère un contexte professionnel réaliste pour une application de planification de calendrier.

Crée un contexte professionnel aléatoire et TRÈS DIVERSIFIÉ - cela peut être un cabinet d'avocats, un hôpital,
une équipe sportive, une école, une entreprise artisanale, une agence gouvernementale, un restaurant, une entreprise agricole
ou tout autre cadre professionnel. Sois créatif et spécifique, en évitant les contextes trop typiques de startups tech.

Nous sommes le {today}. Pour ce contexte, fournis:

1. Le type d'entreprise/organisation
2. Le nom de l'entreprise/organisation (fictif mais réaliste)
3. Une liste de 5-7 collègues avec:
   - Nom (des noms français)
   - Titre de poste spécifique au lieu de travail choisi
4. Un utilisateur actuel (moi) avec:
   - Nom (un nom français)
   - Titre de poste
   - 3 objectifs professionnels spécifiques à atteindre prochainement
5. Un ensemble de 10-15 réunions comprenant:
   - Titre (spécifique au lieu de travail)
   - Description
   - Heure de début et de fin (dans les 7 prochains jours)
   - Si la réunion est flexible/peut être reprogrammée
   - Liste des participants (parmi les collègues et l'utilisateur actuel)
   - À quel objectif la réunion est liée (pour les réunions de l'utilisateur actuel)
   - Lieu (nom de salle, virtuel ou lieu externe)

IMPORTANT: Assure-toi que TOUT le contenu textuel soit en français. Les noms, titres, descriptions, tout doit être en français.

Retourne les données sous forme d'objet JSON avec cette structure:
{{
  "companyType": "Type d'entreprise/organisation",
  "companyName": "Nom de l'entreprise/organisation",
  "colleagues": [
    {{"id": "unique-id-1", "name": "Nom du collègue", "job": "Titre du poste", "meetings": ["meeting-id-1", "meeting-id-2"]}}
  ],
  "currentUser": {{
    "id": "user-id",
    "name": "Nom de l'utilisateur",
    "job": "Titre du poste de l'utilisateur",
    "meetings": ["meeting-id-1", "meeting-id-3"],
    "objectives": ["Objectif 1", "Objectif 2", "Objectif 3"]
  }},
  "meetings": [
    {{
      "id": "meeting-id-1",
      "title": "Titre de la réunion",
      "description": "Description de la réunion",
      "startTime": "YYYY-MM-DDTHH:MM:SS",
      "endTime": "YYYY-MM-DDTHH:MM:SS",
      "isFlexible": true,
      "participants": ["user-id", "colleague-id-1"],
      "objective": "Objectif associé ou chaîne vide",
      "location": "Lieu de la réunion"
    }}
  ]
}}

Sois créatif avec le contexte, mais assure-toi qu'il soit réaliste et que les réunions reflètent le type de lieu de travail sélectionné. Utilise différents types d'organisation: juridique, éducation, agriculture, sports, artisanat, service public, santé, etc."""

    CALENDAR_SYSTEM_PROMPT = (
        "Tu es un expert en planification de calendrier. Ta mission est de générer un emploi "
        "du temps optimal qui permettra à l'utilisateur d'atteindre ses objectifs professionnels "
        "tout en respectant ses préférences et contraintes. Tes réponses doivent être "
        "intégralement en français."
    )

    CALENDAR_GENERATION_PROMPT = """Génère un planning de calendrier optimisé pour un {user_role} du {start_date} au {end_date}.

Détails:
- Heures de travail: {working_hours_start} à {working_hours_end}
- Préférences de réunion: {meeting_preferences}
- Engagements existants: {existing_commitments}
- Densité des réunions: {meeting_density}

Objectifs à atteindre:
{objectives}

Créer un calendrier optimal qui permettra à l'utilisateur d'atteindre ses objectifs tout en respectant ses contraintes. Inclure:

1. Du temps dédié pour travailler sur chaque objectif
2. Les réunions obligatoires (existantes et non flexibles)
3. Les réunions reprogrammées de manière optimale (celles qui sont flexibles)
4. Du temps pour la réflexion, la préparation et le suivi
5. Des pauses et du temps personnel (déjeuner, etc.)

IMPORTANT: Pour chaque événement créé qui concerne un objectif spécifique, inclus dans la description une mention claire comme "Lié à l'Objectif 1: [texte de l'objectif]". C'est crucial pour la visualisation dans l'interface.

Pour chaque événement, fournir:
- Titre (réaliste et spécifique)
- Description (brève mais informative, mentionnant explicitement quel objectif est concerné si applicable)
- Date et heure de début
- Date et heure de fin
- Participants (noms et rôles)
- Emplacement (salle, virtuel ou lieu externe)

Formater la réponse comme un objet JSON avec cette structure:
{{
  "events": [
    {{
      "title": "Titre de l'événement",
      "description": "Description de l'événement",
      "startTime": "YYYY-MM-DDTHH:MM:SS",
      "endTime": "YYYY-MM-DDTHH:MM:SS",
      "participants": [{{"name": "Nom", "role": "Rôle"}}],
      "location": "Emplacement"
    }}
  ]
}}

Assure-toi que:
1. Les horaires ne se chevauchent pas
2. Les réunions ont des durées appropriées
3. L'emploi du temps est optimal pour atteindre les 3 objectifs de l'utilisateur
4. La distribution des tâches respecte les contraintes du calendrier (pas de réunions à des moments explicitement indiqués comme non disponibles)
5. Toute période de travail sur un objectif est clairement étiquetée dans la description avec la référence à l'objectif"""

    @classmethod
    def get_model_config(cls, model_name: str = None) -> Dict[str, Any]:
        """Get chat model configuration"""
        return {
            "model": model_name or cls.DEFAULT_MODEL,
            "base_url": cls.OPENAI_BASE_URL,
            "temperature": cls.TEMPERATURE,
            "timeout": cls.LLM_TIMEOUT,
            "max_retries": cls.LLM_MAX_RETRIES,
        }
