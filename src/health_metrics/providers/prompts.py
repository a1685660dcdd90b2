# ============================================================================
# src/health_metrics/providers/prompts.py
# ============================================================================
"""
Extraction Prompt Templates

Provides:
- The shared base prompt (fixed JSON schema, no "N/A" findings)
- Per-provider instruction blocks
- Prompt formatting for a cleaned report text
"""

from typing import Dict


SYSTEM_MESSAGE = (
    "You are a medical AI assistant specialized in analyzing medical reports "
    "and extracting health metrics. Always respond with valid JSON format."
)

BASE_PROMPT = """Analyze this medical report and extract health metrics in JSON format.

CRITICAL INSTRUCTIONS:
1. Find ALL numerical values with medical units (mg/dL, g/dL, %, mmol/L, etc.)
2. Extract ALL test results, even if normal
3. DO NOT return 'N/A' for key_findings - find actual medical data
4. If no medical data is found, return empty array for key_findings

Required JSON structure:
{
  "patient_name": "[Name or N/A]",
  "patient_age": "[Age or N/A]",
  "patient_gender": "[Gender or N/A]",
  "diagnosis": "[Brief summary]",
  "key_findings": [
    {
      "finding": "[Test name]",
      "value": "[Value with unit]",
      "unit": "[Unit]",
      "reference": "[Normal range]",
      "status": "[normal/borderline/high]",
      "description": "[Clear explanation]"
    }
  ],
  "recommendations": ["[Medical advice]"],
  "confidence_score": [0-100 number without %]
}

EXAMPLES of what to extract:
- 'Cholesterol: 180 mg/dL' → Extract as cholesterol finding
- 'Glucose 95 mg/dL (Normal: 70-99)' → Extract as glucose finding
- 'HDL 45, LDL 120' → Extract both as separate findings

Return valid JSON only, no explanations."""


PROVIDER_INSTRUCTIONS: Dict[str, str] = {
    "deepseek": """DeepSeek-specific instructions:
- Focus on numerical values and their units
- Pay special attention to values marked with H (High) or L (Low)
- For blood pressure readings, extract both systolic and diastolic values
- Include relevant context for each finding
- Be precise with reference ranges from the report""",

    "claude": """Claude-specific instructions:
- Apply your advanced reasoning capabilities to medical analysis
- Cross-reference findings with medical knowledge for accuracy
- Identify subtle patterns in lab values and vital signs
- Provide comprehensive status assessment for each finding
- Consider interactions between different biomarkers
- Use medical terminology precisely and consistently""",

    "openai": """OpenAI-specific instructions:
- Leverage your extensive medical training data for accurate analysis
- Focus on extracting precise numerical values with proper units
- Identify all abnormal findings and their clinical significance
- Provide clear status classifications for each measurement
- Ensure all recommendations are evidence-based""",
}


SAMPLE_MEDICAL_TEXT = """COMPREHENSIVE METABOLIC PANEL

Patient: John Doe
Age: 45 years
Gender: Male

TEST RESULTS:
- Glucose: 95 mg/dL (Normal: 70-99 mg/dL)
- Total Cholesterol: 220 mg/dL (Normal: <200 mg/dL) [H]
- HDL Cholesterol: 45 mg/dL (Normal: >40 mg/dL)
- LDL Cholesterol: 145 mg/dL (Normal: <100 mg/dL) [H]
- Triglycerides: 180 mg/dL (Normal: <150 mg/dL) [H]
- Vitamin D: 18 ng/mL (Normal: 30-100 ng/mL) [L]
- ALT: 35 U/L (Normal: 7-40 U/L)
- Creatinine: 1.1 mg/dL (Normal: 0.7-1.3 mg/dL)

CLINICAL NOTES: Borderline high cholesterol levels observed. Vitamin D deficiency noted."""


def format_extraction_prompt(provider: str, report_text: str) -> str:
    """
    Build the full user prompt for a provider.

    Args:
        provider: Provider name (deepseek, claude, openai)
        report_text: Already cleaned report text

    Returns:
        Base prompt, provider instructions (if any) and the report text
    """
    parts = [BASE_PROMPT]
    instructions = PROVIDER_INSTRUCTIONS.get(provider)
    if instructions:
        parts.append(instructions)
    parts.append(f"Medical Report Text:\n\n{report_text}")
    return "\n\n".join(parts)
