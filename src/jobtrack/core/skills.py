from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from .logging import log_warning

# A term is either a literal skill name or (name, regex) when the name alone
# cannot express the variants.
SkillTerm = Union[str, Tuple[str, str]]

DEFAULT_MAX_SKILLS = 15

DEFAULT_VOCABULARY: Tuple[SkillTerm, ...] = (
    # languages
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Go", "Golang",
    "Rust", "Ruby", "PHP", "Swift", "Kotlin", "Scala", "R", "MATLAB", "Perl",
    # frontend
    "React", "React.js", "ReactJS", "Vue", "Vue.js", "VueJS", "Angular",
    "Svelte", "Next.js", "NextJS", "Nuxt", "Gatsby", "Redux", "MobX",
    ("HTML", r"HTML5?"), ("CSS", r"CSS3?"), "Sass", "SCSS", "Less", "Tailwind",
    "Bootstrap", "Material UI", "Chakra UI", "jQuery", "Webpack", "Vite", "Babel",
    # backend
    "Node.js", "NodeJS", "Express", "Express.js", "Fastify", "NestJS",
    "Django", "Flask", "FastAPI", "Spring", "Spring Boot", "Laravel",
    "Ruby on Rails", "Rails", "ASP.NET", ".NET",
    # databases
    "SQL", "PostgreSQL", "MySQL", "SQLite", "Oracle", "SQL Server",
    "MongoDB", "Redis", "Elasticsearch", "Cassandra", "DynamoDB",
    "Firebase", "Supabase", "Prisma", "Sequelize", "TypeORM",
    # cloud & devops
    "AWS", "Amazon Web Services", "Azure", "GCP", "Google Cloud",
    "Docker", "Kubernetes", "K8s", "Terraform", "Ansible", "Jenkins",
    "CI/CD", "GitHub Actions", "GitLab CI", "CircleCI", "Travis CI",
    "Nginx", "Apache", "Linux", "Unix", "Bash", "Shell",
    # apis & protocols
    "REST", "RESTful", "GraphQL", "gRPC", "WebSocket", "OAuth",
    "JWT", "API", "Microservices",
    # testing
    "Jest", "Mocha", "Chai", "Cypress", "Playwright", "Selenium",
    "Pytest", "JUnit", "TestNG", "TDD", "BDD", "Unit Testing",
    # data & ml
    "Machine Learning", "ML", "Deep Learning", "AI", "Artificial Intelligence",
    "TensorFlow", "PyTorch", "Keras", "Scikit-learn", "Pandas", "NumPy",
    "Data Science", "Data Engineering", "ETL", "Spark", "Hadoop",
    # mobile
    "React Native", "Flutter", "iOS", "Android", "Mobile Development",
    # tools & practices
    "Git", "GitHub", "GitLab", "Bitbucket", "Jira", "Confluence",
    "Agile", "Scrum", "Kanban", "Figma", "Sketch", "Adobe XD",
)  # fmt: skip

# keys are lower-case spellings as they may appear in a posting
SKILL_ALIASES: Dict[str, str] = {
    "react.js": "React",
    "reactjs": "React",
    "vue.js": "Vue",
    "vuejs": "Vue",
    "node.js": "Node.js",
    "nodejs": "Node.js",
    "express.js": "Express",
    "next.js": "Next.js",
    "nextjs": "Next.js",
    "c++": "C++",
    "c#": "C#",
    "golang": "Go",
    "k8s": "Kubernetes",
    "amazon web services": "AWS",
    "google cloud": "GCP",
    "restful": "REST",
    "html5": "HTML",
    "css3": "CSS",
}


def _term_regex(term: SkillTerm) -> Tuple[str, str]:
    if isinstance(term, tuple):
        name, pattern = term
    else:
        name, pattern = term, re.escape(term)
    # \b fails next to symbols ("C++", ".NET"), so bound on non-word characters instead
    return name, rf"(?<!\w)(?:{pattern})(?!\w)"


@dataclass
class SkillExtractor:
    vocabulary: Sequence[SkillTerm] = DEFAULT_VOCABULARY
    aliases: Dict[str, str] = field(default_factory=lambda: dict(SKILL_ALIASES))
    max_results: int = DEFAULT_MAX_SKILLS

    def __post_init__(self) -> None:
        self._compiled: List[Tuple[str, Pattern[str]]] = []
        for term in self.vocabulary:
            try:
                name, pattern = _term_regex(term)
                self._compiled.append((name, re.compile(pattern, re.IGNORECASE)))
            except (re.error, TypeError, ValueError) as ex:
                log_warning("skill_pattern_skipped", term=repr(term), error=str(ex))

    def canonical(self, name: str) -> str:
        return self.aliases.get(name.lower(), name)

    def extract(self, text: Optional[str], max_results: Optional[int] = None) -> List[str]:
        if not text:
            return []
        cap = self.max_results if max_results is None else max_results
        found: Dict[str, None] = {}
        for name, regex in self._compiled:
            if len(found) >= cap:
                break
            if regex.search(text):
                found.setdefault(self.canonical(name), None)
        return list(found)


_DEFAULT_EXTRACTOR: Optional[SkillExtractor] = None


def default_extractor() -> SkillExtractor:
    global _DEFAULT_EXTRACTOR
    if _DEFAULT_EXTRACTOR is None:
        _DEFAULT_EXTRACTOR = SkillExtractor()
    return _DEFAULT_EXTRACTOR


def extract_skills(text: Optional[str], max_results: int = DEFAULT_MAX_SKILLS) -> List[str]:
    return default_extractor().extract(text, max_results=max_results)


def merge_skill_tags(skills: Iterable[str], tags: Iterable[str], cap: int) -> List[str]:
    """Append page skill tags not already present, then cap."""
    merged = list(skills)
    for tag in tags:
        t = (tag or "").strip()
        if t and t not in merged:
            merged.append(t)
    return merged[:cap]
