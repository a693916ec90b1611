# OpCode -> GLSL emitters, one module per op family.
# ShaderGenerator looks emitters up through get_emitter.

from .registry import EMITTER_REGISTRY, get_emitter

__all__ = ['EMITTER_REGISTRY', 'get_emitter']
