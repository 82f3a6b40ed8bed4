"""Shared generation principles for all code-producing stage agents.

Sharp instructions about what a deliverable application must look like,
not just output format.
"""

CODE_PRINCIPLES = """
## Code Generation Principles

### Deliver What Was Agreed
- Implement every agreed feature; nothing more, nothing less
- Respect the founder's acknowledged risks and chosen optional items
- Never invent features that are not in the project definition

### Production Quality
- Generate complete, runnable code with no placeholders
- Handle loading states, empty states and errors in every view
- Use functional React components and hooks
- Style with Tailwind CSS utility classes

### Security
- Never hardcode secrets, API keys, or credentials
- Read configuration from environment variables
- Never store raw card data; use the payment provider's hosted fields
"""

ARCHITECTURE_PRINCIPLES = """
### Architecture Rules
- One page component per route
- Protect routes that expose user data
- Keep global state small; prefer context providers per concern
- Integration points for selected modules live under src/integrations
"""

COMPONENT_PRINCIPLES = """
### Component Rules
- Components are reusable and take data through props
- Every interactive element is keyboard accessible
- Layout components own page chrome; feature components own behavior
"""

ASSEMBLY_PRINCIPLES = """
### Assembly Rules
- package.json lists every dependency actually imported
- Include README, .env.example and .gitignore
- Deployment configuration targets the selected hosting platform
- Include a testing setup with at least one example test
"""
