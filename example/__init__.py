"""
Exemplo de aplicação usando o viewkit.

Esta aplicação demonstra:
- Definição de Models com soft delete
- Serializers de entrada e saída
- FilterSets declarativos
- ViewSets com CRUD completo e actions extras
- Permissões por action
- Roteamento automático
"""
