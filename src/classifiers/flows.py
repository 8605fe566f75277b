"""
Prompt flows for the hosted model.

Each flow pairs a prompt template with the JSON schema the model must answer
in and the pydantic model the answer is validated against.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, Field

from models.labels import EmergencyType, MaskStatus, UniformStatus


class AnalyzeEmergencyOutput(BaseModel):
    emergency_type: Optional[EmergencyType] = Field(
        None, description="The type of emergency detected in the image, or null if none."
    )


class AnalyzeMaskOutput(BaseModel):
    mask_status: MaskStatus = Field(..., description="The status of face mask wearing in the image.")


class CheckUniformOutput(BaseModel):
    uniform_status: UniformStatus = Field(..., description="Granted if the registered uniform is worn.")


class RecognizeStudentOutput(BaseModel):
    usn: Optional[str] = Field(None, description="USN of the recognised student, or null.")


class ContextualHelpOutput(BaseModel):
    help_text: str = Field(..., description="The contextual help text for the specified feature.")


class SummarizeEmergencyOutput(BaseModel):
    summary: str = Field(..., description="A concise summary of the event and the suggested treatment.")


@dataclass(frozen=True)
class PromptFlow:
    name: str
    template: str
    output_model: Type[BaseModel]
    response_schema: Dict[str, Any]

    def render(self, **fields: Any) -> str:
        return self.template.format(**fields)


def _enum_schema(values, nullable: bool = False) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "STRING", "enum": [v.value for v in values]}
    if nullable:
        schema["nullable"] = True
    return schema


ANALYZE_EMERGENCY = PromptFlow(
    name="analyzeEmergency",
    template=(
        "You are an AI security expert. Analyze the provided image to determine if it "
        "contains an emergency situation.\n\n"
        "Look for the following emergency types:\n"
        "- 'Fall Detected': A person has clearly fallen and may be injured.\n"
        "- 'SOS Hand Sign': A person is making a recognizable SOS hand signal.\n"
        "- 'Chest Pain': A person is clutching their chest in distress.\n\n"
        "If one of these is detected, return the corresponding emergency type. If the image "
        "is normal and shows no signs of an emergency, return null for emergency_type."
    ),
    output_model=AnalyzeEmergencyOutput,
    response_schema={
        "type": "OBJECT",
        "properties": {"emergency_type": _enum_schema(EmergencyType, nullable=True)},
    },
)

ANALYZE_MASK = PromptFlow(
    name="analyzeMask",
    template=(
        "You are an AI model that specializes in image analysis for safety compliance. "
        "Analyze the provided image and determine if the person in it is wearing a face mask.\n\n"
        "- If a mask is clearly being worn correctly, return 'Worn'.\n"
        "- If a mask is not being worn, or is worn incorrectly (e.g., under the chin), return 'Not Worn'.\n"
        "- If there is no person in the image, or it's impossible to tell, return 'Unknown'."
    ),
    output_model=AnalyzeMaskOutput,
    response_schema={
        "type": "OBJECT",
        "properties": {"mask_status": _enum_schema(MaskStatus)},
        "required": ["mask_status"],
    },
)

CHECK_UNIFORM = PromptFlow(
    name="checkUniform",
    template=(
        "You are checking campus uniform compliance. The first image is the registered "
        "uniform. The second image is a live camera frame.\n\n"
        "Return 'Granted' if the person in the live frame is wearing the registered uniform. "
        "Return 'Denied' if they are not, or if no person is visible."
    ),
    output_model=CheckUniformOutput,
    response_schema={
        "type": "OBJECT",
        "properties": {"uniform_status": _enum_schema(UniformStatus)},
        "required": ["uniform_status"],
    },
)

RECOGNIZE_STUDENT = PromptFlow(
    name="recognizeStudent",
    template=(
        "You are a face recognition assistant for class attendance. The last image is a live "
        "camera frame. The images before it are enrolled students, in this order:\n"
        "{roster}\n\n"
        "If the person in the live frame matches one of the enrolled students, return that "
        "student's USN. Otherwise return null for usn."
    ),
    output_model=RecognizeStudentOutput,
    response_schema={
        "type": "OBJECT",
        "properties": {"usn": {"type": "STRING", "nullable": True}},
    },
)

CONTEXTUAL_HELP = PromptFlow(
    name="contextualHelp",
    template=(
        "You are a chatbot assistant providing contextual help for the GuardianEye application.\n\n"
        "A user is currently using the '{feature_name}' feature and has requested help.\n\n"
        "Provide a concise and informative explanation of how to use the feature, including its "
        "purpose and key functionalities. Keep the explanation brief and easy to understand for "
        "a new user. Return only the help text. Do not include any introductory or concluding remarks."
    ),
    output_model=ContextualHelpOutput,
    response_schema={
        "type": "OBJECT",
        "properties": {"help_text": {"type": "STRING"}},
        "required": ["help_text"],
    },
)

SUMMARIZE_EMERGENCY = PromptFlow(
    name="summarizeEmergencyReport",
    template=(
        "You are a security operator summarizing emergency events for record-keeping.\n\n"
        "Summarize the following emergency event and the suggested treatment plan into a concise report.\n\n"
        "Date: {date}\n"
        "Time: {time}\n"
        "Emergency Type: {emergency_type}\n"
        "Suggested Treatment: {suggested_treatment}\n"
        "The attached image shows the student involved."
    ),
    output_model=SummarizeEmergencyOutput,
    response_schema={
        "type": "OBJECT",
        "properties": {"summary": {"type": "STRING"}},
        "required": ["summary"],
    },
)
