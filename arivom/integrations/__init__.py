# Provider clients (language model)
