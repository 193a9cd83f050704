from __future__ import annotations

from threading import Lock
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

from .config import MODEL_TIERS

PlanType = Literal["noob", "pro", "hacker"]
ModelTier = Literal["cepat", "seimbang", "akurat"]

UNLIMITED = -1


class Plan(BaseModel):
  id: PlanType
  name: str
  description: str
  requests_per_minute: int  # -1 = unlimited
  badge: str
  badge_color: str
  features: List[str]
  requires_activation: bool
  is_verified: bool
  allowed_models: List[ModelTier]
  max_file_uploads: int  # -1 = unlimited
  max_context_pins: int  # 0 = disabled, -1 = unlimited
  priority_response: bool


PLANS: Dict[str, Plan] = {
    "noob": Plan(
        id="noob",
        name="Noob",
        description="Gratis selamanya, cocok untuk coba-coba",
        requests_per_minute=10,
        badge="NOOB",
        badge_color="bg-zinc-600",
        features=[
            "10 request per menit",
            "Model Cepat (Flash Lite)",
            "Upload 1 file per chat",
            "Riwayat 7 hari terakhir",
            "Akses YouTube & GitHub analyzer",
        ],
        requires_activation=False,
        is_verified=False,
        allowed_models=["cepat"],
        max_file_uploads=1,
        max_context_pins=0,
        priority_response=False,
    ),
    "pro": Plan(
        id="pro",
        name="Pro",
        description="Power user dengan akses model premium",
        requests_per_minute=30,
        badge="PRO",
        badge_color="bg-blue-600",
        features=[
            "30 request per menit",
            "Model Cepat + Seimbang",
            "Upload hingga 5 file per chat",
            "Context pinning (3 slot)",
            "Riwayat tanpa batas",
            "Semua persona tersedia",
        ],
        requires_activation=True,
        is_verified=True,
        allowed_models=["cepat", "seimbang"],
        max_file_uploads=5,
        max_context_pins=3,
        priority_response=False,
    ),
    "hacker": Plan(
        id="hacker",
        name="Hacker",
        description="Unlimited everything untuk developer sejati",
        requests_per_minute=UNLIMITED,
        badge="HACKER",
        badge_color="bg-gradient-to-r from-emerald-500 to-green-400",
        features=[
            "Unlimited request",
            "Semua model termasuk Akurat (Pro)",
            "Upload file tanpa batas",
            "Context pinning tanpa batas",
            "Prioritas response lebih cepat",
            "Early access fitur eksperimental",
            "Custom system prompt",
        ],
        requires_activation=True,
        is_verified=True,
        allowed_models=["cepat", "seimbang", "akurat"],
        max_file_uploads=UNLIMITED,
        max_context_pins=UNLIMITED,
        priority_response=True,
    ),
}

DEFAULT_PLAN_ID = "noob"


def get_plan(plan_id: Optional[str]) -> Plan:
  return PLANS.get(plan_id or "", PLANS[DEFAULT_PLAN_ID])


def can_use_model(plan: Plan, model: str) -> bool:
  return model in plan.allowed_models


def can_upload_files(plan: Plan, current_count: int) -> bool:
  if plan.max_file_uploads == UNLIMITED:
    return True
  return current_count < plan.max_file_uploads


def can_pin_context(plan: Plan, current_pins: int) -> bool:
  if plan.max_context_pins == UNLIMITED:
    return True
  if plan.max_context_pins == 0:
    return False
  return current_pins < plan.max_context_pins


def model_tier_for(model_id: str) -> Optional[str]:
  for tier, model_name in MODEL_TIERS.items():
    if model_name == model_id:
      return tier
  return None


# -------------------------
# Activation codes
# -------------------------
class ActivationCode(BaseModel):
  plan_id: PlanType
  max_uses: int
  uses: int = 0


class ActivationResult(BaseModel):
  valid: bool
  plan_id: Optional[PlanType] = None
  error: Optional[str] = None


activation_codes: Dict[str, ActivationCode] = {
    "PRO-NEZARAI-2024": ActivationCode(plan_id="pro", max_uses=100),
    "HACKER-MODE-ON": ActivationCode(plan_id="hacker", max_uses=20),
    "EARLY-BIRD-PRO": ActivationCode(plan_id="pro", max_uses=50),
    "NEZAR-VIP-ACCESS": ActivationCode(plan_id="hacker", max_uses=5),
}
_activation_lock = Lock()


def normalize_activation_code(code: str) -> str:
  return (code or "").strip().upper()


def validate_activation_code(code: str) -> ActivationResult:
  entry = activation_codes.get(normalize_activation_code(code))
  if entry is None:
    return ActivationResult(valid=False, error="Kode aktivasi tidak valid")
  if entry.uses >= entry.max_uses:
    return ActivationResult(valid=False,
                            error="Kode aktivasi sudah mencapai batas penggunaan")
  return ActivationResult(valid=True, plan_id=entry.plan_id)


def redeem_activation_code(code: str) -> ActivationResult:
  with _activation_lock:
    result = validate_activation_code(code)
    if result.valid:
      activation_codes[normalize_activation_code(code)].uses += 1
    return result
