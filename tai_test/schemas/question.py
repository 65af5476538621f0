"""
Pydantic schemas for the question bank and block catalogue
"""
from pydantic import BaseModel, Field
from typing import Dict, Literal, Optional


BlockType = Literal["block1", "block2", "block3", "block4"]
OptionLabel = Literal["a", "b", "c", "d"]


class QuestionOptions(BaseModel):
    """The four labelled answer options"""
    a: str
    b: str
    c: str
    d: str

    class Config:
        frozen = True


class Question(BaseModel):
    """A single multiple-choice question from the bank"""
    id: str
    block: BlockType
    theme: int = Field(..., ge=1)
    text: str
    options: QuestionOptions
    correct_answer: OptionLabel
    explanation: Optional[str] = None

    class Config:
        frozen = True


class BlockInfo(BaseModel):
    """Thematic block metadata"""
    id: BlockType
    name: str
    description: str
    total_themes: int
    total_questions: int


BLOCKS: Dict[str, BlockInfo] = {
    "block1": BlockInfo(
        id="block1",
        name="Organización del Estado y Administración Electrónica",
        description="Normativa, Constitución, Gobierno, Protección de datos",
        total_themes=9,
        total_questions=20,
    ),
    "block2": BlockInfo(
        id="block2",
        name="Tecnología Básica",
        description="Informática básica, periféricos, sistemas operativos, bases de datos",
        total_themes=5,
        total_questions=20,
    ),
    "block3": BlockInfo(
        id="block3",
        name="Desarrollo de Sistemas",
        description="Programación, lenguajes, POO, aplicaciones web, accesibilidad",
        total_themes=12,
        total_questions=20,
    ),
    "block4": BlockInfo(
        id="block4",
        name="Sistemas y Comunicaciones",
        description="Administración de sistemas, redes, TCP/IP, seguridad",
        total_themes=10,
        total_questions=20,
    ),
}

# Display names stored on results
BLOCK_SHORT_NAMES: Dict[str, str] = {
    "block1": "Organización del Estado",
    "block2": "Tecnología Básica",
    "block3": "Desarrollo de Sistemas",
    "block4": "Sistemas y Comunicaciones",
}
