"""
RPG Framework module.

Provides the battle layer built on top of the engine:
- Components (stats and status effects, Pydantic models)
- Battle (combatants, skills, damage, turn order, command selection,
  enemy AI, the battle state machine and a headless UI controller)
- Status (status effect rules)
- Inventory (battle item use)
"""
